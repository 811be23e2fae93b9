"""
证书过期评估服务
"""
from datetime import datetime, timezone

from ..interfaces import ExpiryEvaluatorInterface
from ..models import PeerCredential, ExpiryReport, Urgency


COMMON_NAME_PREFIX = "CN="

SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24


def extract_subject_name(encoded: str) -> str:
    """
    从编码后的主体名中提取通用名称

    Args:
        encoded: RFC 4514 编码的主体名，如 "CN=example.com"

    Returns:
        str: 去掉 "CN=" 前缀后的名称；没有该前缀时原样返回
    """
    if encoded.startswith(COMMON_NAME_PREFIX):
        return encoded[len(COMMON_NAME_PREFIX):]
    return encoded


def _as_utc(value: datetime) -> datetime:
    # 无时区信息的时间按UTC处理
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ExpiryEvaluator(ExpiryEvaluatorInterface):
    """证书过期评估器"""

    def __init__(self, critical_days: float = 7, warning_days: float = 30):
        """
        初始化过期评估器

        Args:
            critical_days: 紧急阈值天数（含），默认7天
            warning_days: 警告阈值天数（含），默认30天
        """
        if critical_days > warning_days:
            raise ValueError("critical_days 不能大于 warning_days")
        self.critical_days = critical_days
        self.warning_days = warning_days

    def calculate_days_remaining(self, not_after: datetime, now: datetime) -> float:
        """
        计算距离过期的天数

        Args:
            not_after: 证书过期时间
            now: 当前时间

        Returns:
            float: 剩余天数，保留小数部分（负数表示已过期）
        """
        delta = _as_utc(not_after) - _as_utc(now)
        hours = delta.total_seconds() / SECONDS_PER_HOUR
        return hours / HOURS_PER_DAY

    def classify(self, days_remaining: float) -> Urgency:
        """
        根据剩余天数判断紧急程度

        Args:
            days_remaining: 剩余天数

        Returns:
            Urgency: 紧急程度
        """
        if days_remaining <= self.critical_days:
            return Urgency.CRITICAL
        if days_remaining <= self.warning_days:
            return Urgency.WARNING
        return Urgency.OK

    def evaluate(self, credential: PeerCredential, now: datetime) -> ExpiryReport:
        """
        评估证书过期状态

        Args:
            credential: 叶子证书信息
            now: 当前时间，由调用方提供

        Returns:
            ExpiryReport: 评估结果
        """
        days_remaining = self.calculate_days_remaining(credential.not_after, now)

        return ExpiryReport(
            subject_name=extract_subject_name(credential.subject_name),
            not_after=credential.not_after,
            days_remaining=days_remaining,
            urgency=self.classify(days_remaining),
            checked_at=now
        )
