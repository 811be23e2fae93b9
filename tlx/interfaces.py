"""
服务接口定义
"""
from abc import ABC, abstractmethod
from datetime import datetime

from .models import Target, PeerCredential, ExpiryReport


class SessionOpenerInterface(ABC):
    """TLS会话打开器接口"""

    @abstractmethod
    def fetch_credential(self, target: Target) -> PeerCredential:
        """获取目标出示的叶子证书"""
        pass


class ExpiryEvaluatorInterface(ABC):
    """证书过期评估器接口"""

    @abstractmethod
    def evaluate(self, credential: PeerCredential, now: datetime) -> ExpiryReport:
        """根据给定的当前时间评估证书"""
        pass


class NotificationServiceInterface(ABC):
    """通知服务接口"""

    @abstractmethod
    def send_expiry_notification(self, report: ExpiryReport) -> bool:
        """发送证书过期通知"""
        pass

    @abstractmethod
    def format_notification_content(self, report: ExpiryReport) -> str:
        """格式化通知内容"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""

    @abstractmethod
    def log_check_start(self, target: Target):
        """记录检查开始"""
        pass

    @abstractmethod
    def log_report(self, target: Target, report: ExpiryReport):
        """记录评估结果"""
        pass

    @abstractmethod
    def log_error(self, target: Target, error: Exception):
        """记录错误信息"""
        pass
