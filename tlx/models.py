"""
数据模型定义
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


DEFAULT_PORT = "443"


@dataclass(frozen=True)
class Target:
    """检查目标（主机 + 端口）"""
    host: str
    port: str = DEFAULT_PORT

    def __post_init__(self):
        if not self.host or not self.host.strip():
            raise ValueError("主机名不能为空")

    @property
    def address(self) -> str:
        """host:port 形式的地址"""
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class PeerCredential:
    """对端出示的叶子证书"""
    subject_name: str
    not_after: datetime
    issuer_name: str = ""
    not_before: Optional[datetime] = None


class Urgency(Enum):
    """过期紧急程度"""
    CRITICAL = "critical"
    WARNING = "warning"
    OK = "ok"


@dataclass(frozen=True)
class ExpiryReport:
    """证书过期评估结果"""
    subject_name: str
    not_after: datetime
    days_remaining: float
    urgency: Urgency
    checked_at: datetime

    @property
    def rounded_days(self) -> int:
        """用于展示的剩余天数（与分级使用同一个未取整的值）"""
        return round(self.days_remaining)

    @property
    def is_critical(self) -> bool:
        return self.urgency is Urgency.CRITICAL

    @property
    def is_expired(self) -> bool:
        """判断是否已过期"""
        return self.days_remaining < 0
