from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

REPORT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

INSIGHT_SECTIONS = [
    ("campaign_optimization", "CAMPAIGN OPTIMIZATION INSIGHTS"),
    ("bid_recommendations", "BID RECOMMENDATIONS"),
    ("device_timing_insights", "DEVICE & TIMING INSIGHTS"),
    ("transparency_methodology", "METHODOLOGY & TRANSPARENCY"),
]


def export_filename(analyses: Sequence[Dict[str, Any]], generated_at: datetime) -> str:
    stem = "vla_comprehensive_analyses" if analyses else "vla_analyses_export"
    return f"{stem}_{generated_at.date().isoformat()}.txt"


def _fmt_int(value: Any, missing: str = "N/A") -> str:
    if value is None:
        return missing
    try:
        return f"{int(value):,}"
    except (TypeError, ValueError):
        return missing


def _fmt_float(value: Any, places: int = 2, missing: str = "N/A") -> str:
    if value is None:
        return missing
    try:
        return f"{float(value):.{places}f}"
    except (TypeError, ValueError):
        return missing


def _as_mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _fmt_created(value: Optional[str]) -> str:
    if not value:
        return "N/A"
    try:
        return datetime.fromisoformat(value).strftime(REPORT_TIMESTAMP_FORMAT)
    except ValueError:
        return value


def performance_score(analysis: Dict[str, Any]) -> float:
    ctr = analysis.get("average_ctr") or 0
    cpa = analysis.get("average_cpa") or 0
    return ctr * 10 + (100 - cpa)


def _campaign_lines(campaigns: List[Dict[str, Any]]) -> List[str]:
    lines: List[str] = []
    for i, campaign in enumerate(campaigns, start=1):
        campaign = _as_mapping(campaign)
        lines.append(f"{i}. {campaign.get('name', 'Unnamed campaign')}")
        lines.append(f"   Impressions: {_fmt_int(campaign.get('impressions'))}")
        lines.append(f"   Clicks: {_fmt_int(campaign.get('clicks'))}")
        lines.append(f"   CTR: {_fmt_float(campaign.get('ctr'))}%")
        lines.append(f"   CPC: ${_fmt_float(campaign.get('cpc'))}")
        lines.append(f"   Cost: ${_fmt_float(campaign.get('cost'))}")
        lines.append("")
    return lines


def _device_lines(devices: Dict[str, Any]) -> List[str]:
    # Producers store either plain click counts or {"percentage": ..., "clicks": ...} per device.
    counted = [value for value in devices.values() if _is_number(value)]
    total_clicks = sum(counted)
    lines = ["DEVICE BREAKDOWN:"]
    for device, data in devices.items():
        if _is_number(data):
            share = data / total_clicks * 100 if total_clicks else None
            percentage, clicks = share, data
        else:
            data = _as_mapping(data)
            percentage, clicks = data.get("percentage"), data.get("clicks")
        lines.append(f"{device}: {_fmt_float(percentage, 1)}% ({_fmt_int(clicks)} clicks)")
    lines.append("")
    return lines


def _analytics_lines(analytics: Dict[str, Any]) -> List[str]:
    lines = ["DETAILED ANALYTICS DATA", "-" * 30]

    top = analytics.get("topPerformingCampaigns") or []
    if isinstance(top, list) and top:
        lines += ["", "TOP PERFORMING CAMPAIGNS:"]
        lines += _campaign_lines(top)

    under = analytics.get("underperformingCampaigns") or []
    if isinstance(under, list) and under:
        lines.append("UNDERPERFORMING CAMPAIGNS:")
        lines += _campaign_lines(under)

    devices = analytics.get("deviceBreakdown")
    if isinstance(devices, dict) and devices:
        lines += _device_lines(devices)

    timeline = analytics.get("timeBasedPerformance") or []
    if isinstance(timeline, list) and timeline:
        lines.append("TIME-BASED PERFORMANCE:")
        for point in timeline:
            point = _as_mapping(point)
            lines.append(
                f"{point.get('date', 'N/A')}: {point.get('clicks') or 'N/A'} clicks, "
                f"${_fmt_float(point.get('cost'))} cost"
            )
        lines.append("")
    return lines


def _insight_lines(insights: Dict[str, Any]) -> List[str]:
    lines = ["COMPLETE AI ANALYSIS & INSIGHTS", "-" * 50, ""]
    if insights.get("full_analysis"):
        lines += [str(insights["full_analysis"]), ""]
    for key, title in INSIGHT_SECTIONS:
        if insights.get(key):
            lines += [f"{title}:", str(insights[key]), ""]
    return lines


def _analysis_lines(index: int, analysis: Dict[str, Any]) -> List[str]:
    rule = "=" * 80
    lines = [
        "",
        rule,
        f"ANALYSIS #{index}: {analysis.get('session_name') or 'Untitled Analysis'}",
        rule,
        "",
        "ANALYSIS OVERVIEW",
        "-" * 30,
        f"Analysis ID: {analysis.get('id')}",
        f"Session ID: {analysis.get('session_id') or 'N/A'}",
        f"Created: {_fmt_created(analysis.get('created_at'))}",
        "",
        "KEY PERFORMANCE METRICS",
        "-" * 30,
        f"Total Impressions: {_fmt_int(analysis.get('total_impressions') or 0)}",
        f"Total Clicks: {_fmt_int(analysis.get('total_clicks') or 0)}",
        f"Total Cost: ${_fmt_float(analysis.get('total_cost') or 0)}",
        f"Average CTR: {_fmt_float(analysis.get('average_ctr') or 0)}%",
        f"Average CPC: ${_fmt_float(analysis.get('average_cpc') or 0)}",
        f"Average CPA: ${_fmt_float(analysis.get('average_cpa') or 0)}",
        f"Performance Score: {performance_score(analysis):.1f}",
        "",
    ]

    if analysis.get("dealership_context"):
        lines += [
            "DEALERSHIP CONTEXT",
            "-" * 30,
            json.dumps(analysis["dealership_context"], indent=2),
            "",
        ]
    if _as_mapping(analysis.get("analytics_data")):
        lines += _analytics_lines(analysis["analytics_data"])
    if _as_mapping(analysis.get("ai_insights")):
        lines += _insight_lines(analysis["ai_insights"])

    lines += ["", rule]
    return lines


def render_export_report(analyses: Sequence[Dict[str, Any]], generated_at: datetime) -> str:
    """Render serialized analyses into the plain-text export report."""
    stamp = generated_at.strftime(REPORT_TIMESTAMP_FORMAT)
    if not analyses:
        lines = [
            "VLA DASHBOARD - ANALYSIS EXPORT REPORT",
            "=" * 37,
            "",
            "No saved analyses found.",
            "Generate and save some analysis results first.",
            "",
            f"Report generated: {stamp}",
        ]
        return "\n".join(lines) + "\n"

    lines = [
        "VLA DASHBOARD - COMPREHENSIVE ANALYSIS EXPORT",
        "=" * 50,
        "",
        f"Export Date: {stamp}",
        f"Total Analyses: {len(analyses)}",
        "",
    ]
    for index, analysis in enumerate(analyses, start=1):
        lines += _analysis_lines(index, analysis)

    lines += ["", f"Report generated: {stamp}", "End of VLA Dashboard Analysis Export"]
    return "\n".join(lines) + "\n"
