from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


SWOT_REPORT_ID = 'swot-analysis'


@dataclass(frozen=True)
class ReportType:
    id: str
    name: str
    description: str


@dataclass(frozen=True)
class ReportCatalog:
    """Ordered, read-only list of report types. Order drives the table of contents."""

    report_types: tuple[ReportType, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for report_type in self.report_types:
            if report_type.id in seen:
                raise ValueError(f'duplicate report type id: {report_type.id}')
            seen.add(report_type.id)

    def __iter__(self) -> Iterator[ReportType]:
        return iter(self.report_types)

    def __len__(self) -> int:
        return len(self.report_types)

    def get(self, report_type_id: str) -> ReportType | None:
        for report_type in self.report_types:
            if report_type.id == report_type_id:
                return report_type
        return None

    def name_for(self, report_type_id: str) -> str:
        report_type = self.get(report_type_id)
        return report_type.name if report_type is not None else 'Report'


DEFAULT_REPORT_TYPES: tuple[ReportType, ...] = (
    ReportType('swot-analysis', 'SWOT Analysis', 'Strengths, Weaknesses, Opportunities, Threats'),
    ReportType('competitor-analysis', 'Competitor Analysis', 'Detailed competitor market analysis'),
    ReportType('market-share', 'Market Share Analysis', 'Market share distribution and positioning'),
    ReportType('content-gap', 'Content Gap Analysis', 'Content opportunities and strategy gaps'),
    ReportType('technical-seo', 'Technical SEO Analysis', 'Website performance and SEO comparison'),
    ReportType('ux-comparison', 'UX Comparison', 'User experience and design analysis'),
    ReportType('pricing-comparison', 'Pricing Comparison', 'Pricing strategies and positioning'),
    ReportType('brand-presence', 'Brand Presence Analysis', 'Brand visibility across channels'),
    ReportType('audience-overlap', 'Audience Overlap Analysis', 'Audience segmentation insights'),
    ReportType('30-60-90', '30-60-90 Plan', '90-day execution roadmap'),
    ReportType('revenue-model-canvas', 'Revenue Model Canvas', 'Monetization & business model'),
    ReportType('churn-fix', 'Churn Fix', 'Retention action plan and experiments'),
    ReportType('kpi-dashboard-blueprint', 'KPI Dashboard Blueprint', 'Metrics tree and dashboard design'),
    ReportType('go-to-market-plan', 'Go-to-Market Plan', 'ICP, messaging, channels, and timeline'),
    ReportType('value-proposition', 'Value Proposition', 'Differentiation and messaging'),
    ReportType('pivot-ideas', 'Pivot Ideas', 'Adjacency and pivot options'),
)

DEFAULT_CATALOG = ReportCatalog(DEFAULT_REPORT_TYPES)
