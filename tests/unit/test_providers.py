"""
Report and summary provider tests (httpx mock transport)
"""

import asyncio
import json

import httpx
import pytest

from intelreport.adapters.llm import BasicLLMClient, BasicLLMConfig, LLMSummaryProvider
from intelreport.adapters.report_provider import (
    RemoteSummaryProvider,
    ReportContentProvider,
    ReportProviderConfig,
    SummaryProviderConfig,
)
from intelreport.errors import ReportFetchError, SummarizationError
from intelreport.types import ReportRequest, RequesterContext, SummaryRequest


def _report_provider(handler) -> ReportContentProvider:
    cfg = ReportProviderConfig(
        base_url='http://reports.test/api/',
        api_key='secret',
        endpoint_template='/generate-report/{report_type_id}',
        timeout_seconds=300,
    )
    return ReportContentProvider(cfg, transport=httpx.MockTransport(handler))


def _request(report_type_id: str = 'market-share') -> ReportRequest:
    return ReportRequest(
        report_type_id=report_type_id,
        company_id='c-1',
        competitor_ids=['x-1', 'x-2'],
        requester=RequesterContext(user_id='u-1', firm_id='f-1'),
    )


class TestReportContentProvider:
    """Report fetches"""

    def test_posts_request_payload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen['url'] = str(request.url)
            seen['auth'] = request.headers.get('Authorization')
            seen['body'] = json.loads(request.content)
            return httpx.Response(200, json={'success': True, 'report': '# Market Share\n\nBody'})

        result = asyncio.run(_report_provider(handler).fetch_report(_request()))

        assert result.success
        assert result.content == '# Market Share\n\nBody'
        assert seen['url'] == 'http://reports.test/api/generate-report/market-share'
        assert seen['auth'] == 'Bearer secret'
        assert seen['body'] == {
            'companyId': 'c-1',
            'competitorIds': ['x-1', 'x-2'],
            'userid': 'u-1',
            'firmid': 'f-1',
        }

    def test_swot_json_is_normalized(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={'success': True, 'report': {'Strengths': ['Brand']}})

        result = asyncio.run(_report_provider(handler).fetch_report(_request('swot-analysis')))
        assert result.content.startswith('# SWOT Analysis')
        assert '- Brand' in result.content

    def test_unsuccessful_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={'success': False, 'error': 'quota exceeded'})

        result = asyncio.run(_report_provider(handler).fetch_report(_request()))
        assert not result.success
        assert result.error == 'quota exceeded'

    def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text='unavailable')

        with pytest.raises(ReportFetchError) as excinfo:
            asyncio.run(_report_provider(handler).fetch_report(_request()))
        assert excinfo.value.report_type_id == 'market-share'

    def test_invalid_json_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text='<html>oops</html>')

        with pytest.raises(ReportFetchError):
            asyncio.run(_report_provider(handler).fetch_report(_request()))


class TestRemoteSummaryProvider:
    """Summary service"""

    def _provider(self, handler, base_url='http://summary.test') -> RemoteSummaryProvider:
        cfg = SummaryProviderConfig(
            base_url=base_url,
            api_key=None,
            endpoint='/generate-summary-report',
            timeout_seconds=600,
        )
        return RemoteSummaryProvider(cfg, transport=httpx.MockTransport(handler))

    def test_summary_content(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body['reports'] == ['one', 'two']
            assert 'Authorization' not in request.headers
            return httpx.Response(200, json={'success': True, 'summary': {'content': '# Summary'}})

        request = SummaryRequest(company_id='c-1', reports=['one', 'two'])
        result = asyncio.run(self._provider(handler).summarize(request))
        assert result.success
        assert result.content == '# Summary'

    def test_unsuccessful_summary(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={'success': False})

        result = asyncio.run(self._provider(handler).summarize(SummaryRequest(company_id='c-1')))
        assert not result.success
        assert result.error == 'Failed to generate summary.'

    def test_http_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502)

        with pytest.raises(SummarizationError):
            asyncio.run(self._provider(handler).summarize(SummaryRequest(company_id='c-1')))

    def test_unconfigured(self):
        provider = self._provider(lambda request: httpx.Response(200), base_url=None)
        assert not provider.configured
        with pytest.raises(SummarizationError):
            asyncio.run(provider.summarize(SummaryRequest(company_id='c-1')))


class TestLLMSummaryProvider:
    """Chat-model fallback"""

    def _provider(self, api_key=None, max_input_chars=4000) -> LLMSummaryProvider:
        llm = BasicLLMClient(
            BasicLLMConfig(base_url=None, api_key=api_key, model='gpt-4o-mini', timeout_seconds=60)
        )
        return LLMSummaryProvider(llm, max_input_chars=max_input_chars)

    def test_requires_api_key(self):
        with pytest.raises(SummarizationError):
            asyncio.run(self._provider().summarize(SummaryRequest(company_id='c-1', reports=['x'])))

    def test_prompt_budget_per_report(self):
        provider = self._provider(api_key='k', max_input_chars=2000)
        prompt = provider._build_prompt(SummaryRequest(company_id='c-1', reports=['a' * 5000, '', 'short']))
        assert '## Report 1' in prompt
        assert '## Report 2' not in prompt
        assert '## Report 3\n\nshort' in prompt
        assert '[truncated]' in prompt
        assert 'a' * 1001 not in prompt
