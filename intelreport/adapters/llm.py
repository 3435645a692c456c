from __future__ import annotations

import logging
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from intelreport.errors import SummarizationError
from intelreport.types import SummaryRequest, SummaryResult


logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = (
    'You are a senior strategy consultant. Combine the competitive-intelligence reports '
    'you are given into one executive summary in markdown. Use "#" and "##" headings, '
    'short paragraphs, bullet lists for recommendations and at most one markdown table '
    'for the competitive comparison. Do not invent figures that are not in the reports.'
)


@dataclass
class BasicLLMConfig:
    base_url: str | None
    api_key: str | None
    model: str
    timeout_seconds: int
    temperature: float = 0.3
    max_tokens: int = 4096


class BasicLLMClient:
    """Lazily built AsyncOpenAI client shared by summary calls."""

    def __init__(self, cfg: BasicLLMConfig):
        self.cfg = cfg
        self._client: AsyncOpenAI | None = None

    @property
    def configured(self) -> bool:
        return bool(self.cfg.api_key)

    def client(self) -> AsyncOpenAI:
        if not self.configured:
            raise RuntimeError('LLM client is not configured')
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.cfg.api_key,
                base_url=self.cfg.base_url,
                timeout=max(30, int(self.cfg.timeout_seconds)),
            )
        return self._client


class LLMSummaryProvider:
    """Summarizes report bundles with a chat model when no summary service is set up."""

    def __init__(self, llm: BasicLLMClient, *, max_input_chars: int = 120000):
        self.llm = llm
        self.max_input_chars = max_input_chars

    def _build_prompt(self, request: SummaryRequest) -> str:
        budget = max(1000, self.max_input_chars // max(1, len(request.reports)))
        chunks: list[str] = []
        for index, report in enumerate(request.reports, start=1):
            text = str(report or '').strip()
            if not text:
                continue
            if len(text) > budget:
                text = text[:budget] + '\n[truncated]'
            chunks.append(f'## Report {index}\n\n{text}')
        return '\n\n'.join(chunks)

    async def summarize(self, request: SummaryRequest) -> SummaryResult:
        if not self.llm.configured:
            raise SummarizationError('no summary service or LLM API key is configured')

        prompt = self._build_prompt(request)
        if not prompt:
            return SummaryResult(success=False, error='no report content to summarize')

        logger.info('Summarizing %d reports with %s', len(request.reports), self.llm.cfg.model)
        try:
            completion = await self.llm.client().chat.completions.create(
                model=self.llm.cfg.model,
                temperature=self.llm.cfg.temperature,
                max_tokens=self.llm.cfg.max_tokens,
                messages=[
                    {'role': 'system', 'content': SUMMARY_SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt},
                ],
            )
        except OpenAIError as exc:
            raise SummarizationError(f'summary model call failed: {exc}') from exc

        choices = getattr(completion, 'choices', None) or []
        content = ''
        if choices:
            message = getattr(choices[0], 'message', None)
            content = str(getattr(message, 'content', '') or '').strip()
        if not content:
            return SummaryResult(success=False, error='summary model returned no content')
        return SummaryResult(success=True, content=content)
