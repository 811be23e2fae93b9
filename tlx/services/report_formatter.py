"""
报告格式化服务
"""
from ..models import ExpiryReport, Urgency


DAY_FORMAT = "%Y-%m-%d %H:%M %Z"

ANSI_RESET = "\033[0m"
URGENCY_COLORS = {
    Urgency.CRITICAL: "\033[31m",  # 红色
    Urgency.WARNING: "\033[33m",   # 黄色
    Urgency.OK: "\033[32m",        # 绿色
}


def format_expiry_date(report: ExpiryReport) -> str:
    """格式化过期时间，如 "2024-01-31 00:00 UTC" """
    return report.not_after.strftime(DAY_FORMAT)


def format_report(report: ExpiryReport, color: bool = False) -> str:
    """
    格式化评估结果为单行文本

    Args:
        report: 评估结果
        color: 是否添加ANSI颜色

    Returns:
        str: 如 "example.com expires 2024-01-31 00:00 UTC (in 30 days)"
    """
    line = (
        f"{report.subject_name} expires {format_expiry_date(report)} "
        f"(in {report.rounded_days} days)"
    )

    if not color:
        return line

    return f"{URGENCY_COLORS[report.urgency]}{line}{ANSI_RESET}"
