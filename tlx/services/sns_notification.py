"""
SNS通知服务
"""
import os
import time
from typing import Optional
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..interfaces import NotificationServiceInterface
from ..models import ExpiryReport, Urgency
from .report_formatter import format_expiry_date


# SNS 主题只允许ASCII字符，长度上限为100
MAX_SUBJECT_LENGTH = 100

RETRYABLE_ERROR_CODES = {
    'Throttling',
    'ServiceUnavailable',
    'InternalError',
    'RequestTimeout'
}


def ascii_subject_name(name: str) -> str:
    """
    将证书名称转换为可用于SNS主题的ASCII文本

    国际化域名转换为IDNA形式（xn--...），无法转换时用 "?" 替换非ASCII字符。

    Args:
        name: 证书主体名称

    Returns:
        str: 仅包含ASCII字符的名称
    """
    if name.isascii():
        return name
    try:
        return name.encode('idna').decode('ascii')
    except UnicodeError:
        return name.encode('ascii', 'replace').decode('ascii')


class SNSNotificationService(NotificationServiceInterface):
    """SNS通知服务实现"""

    def __init__(self, topic_arn: Optional[str] = None, region_name: Optional[str] = None,
                 max_retries: int = 3):
        """
        初始化SNS通知服务

        Args:
            topic_arn: SNS主题ARN，如果为None则从环境变量读取
            region_name: AWS区域名称，如果为None则从ARN或环境变量获取
            max_retries: 发布失败时的最大重试次数
        """
        self.topic_arn = topic_arn or os.getenv('SNS_TOPIC_ARN')
        self.max_retries = max_retries
        self.logger = logging.getLogger(__name__)

        if region_name:
            self.region_name = region_name
        elif self.topic_arn and self.topic_arn.startswith('arn:') and self.topic_arn.count(':') >= 5:
            # 从SNS ARN中提取区域
            self.region_name = self.topic_arn.split(':')[3]
        else:
            self.region_name = os.getenv('AWS_REGION', 'us-east-1')

        self._sns_client = None

    @property
    def is_configured(self) -> bool:
        return bool(self.topic_arn)

    @property
    def sns_client(self):
        """按需创建SNS客户端"""
        if self._sns_client is None:
            self._sns_client = boto3.client('sns', region_name=self.region_name)
            self.logger.debug(f"SNS客户端初始化成功，区域: {self.region_name}")
        return self._sns_client

    def should_notify(self, report: ExpiryReport) -> bool:
        """只对警告和紧急状态发送通知"""
        return report.urgency is not Urgency.OK

    def send_expiry_notification(self, report: ExpiryReport) -> bool:
        """
        发送证书过期通知

        Args:
            report: 评估结果

        Returns:
            bool: 发送是否成功（无需发送时也返回True）
        """
        if not self.should_notify(report):
            self.logger.info("证书状态正常，跳过通知发送")
            return True

        if not self.is_configured:
            self.logger.error("SNS主题ARN未配置")
            return False

        subject = self._format_subject(report)
        message = self.format_notification_content(report)

        return self._publish_with_retry(subject, message)

    def _publish_with_retry(self, subject: str, message: str) -> bool:
        """
        带重试机制的SNS消息发布

        Args:
            subject: 消息主题
            message: 消息内容

        Returns:
            bool: 发送是否成功
        """
        for attempt in range(self.max_retries + 1):
            try:
                response = self.sns_client.publish(
                    TopicArn=self.topic_arn,
                    Subject=subject,
                    Message=message
                )

                self.logger.info(f"SNS通知发送成功，MessageId: {response.get('MessageId')}")
                return True

            except ClientError as e:
                error_code = e.response['Error']['Code']
                error_message = e.response['Error']['Message']

                if error_code in RETRYABLE_ERROR_CODES and attempt < self.max_retries:
                    wait_time = 2 ** attempt  # 指数退避
                    self.logger.warning(
                        f"SNS发送失败 (尝试 {attempt + 1}/{self.max_retries + 1}) - {error_code}: {error_message}，"
                        f"{wait_time}秒后重试"
                    )
                    time.sleep(wait_time)
                    continue

                self.logger.error(f"SNS发送失败 - {error_code}: {error_message}")
                return False

            except BotoCoreError as e:
                self.logger.error(f"发送SNS通知时发生错误: {str(e)}")
                return False

        return False

    def _format_subject(self, report: ExpiryReport) -> str:
        """
        格式化消息主题

        Args:
            report: 评估结果

        Returns:
            str: 消息主题
        """
        name = ascii_subject_name(report.subject_name)

        if report.is_expired:
            subject = f"TLS certificate alert: {name} has expired"
        elif report.urgency is Urgency.CRITICAL:
            subject = f"TLS certificate alert: {name} expires in {report.rounded_days} days"
        else:
            subject = f"TLS certificate notice: {name} expires in {report.rounded_days} days"

        return subject[:MAX_SUBJECT_LENGTH]

    def format_notification_content(self, report: ExpiryReport) -> str:
        """
        格式化通知内容

        Args:
            report: 评估结果

        Returns:
            str: 格式化的通知内容
        """
        lines = [
            "TLS证书过期检查报告",
            "=" * 30,
            f"检查时间: {report.checked_at.strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            f"• {report.subject_name}",
            f"  过期时间: {format_expiry_date(report)}",
        ]

        if report.is_expired:
            lines.append(f"  已过期: {abs(report.rounded_days)} 天")
        else:
            lines.append(f"  剩余天数: {report.rounded_days} 天")

        lines.extend([
            f"  紧急程度: {report.urgency.value}",
            "",
            "建议操作:",
            "1. 尽快续期证书" if report.is_critical else "1. 计划续期证书",
            "2. 更新证书后重新部署相关服务",
            "",
            "此消息由 tlx 自动发送。"
        ])

        return "\n".join(lines)
