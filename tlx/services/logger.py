"""
日志服务
"""
import os
import logging
import traceback
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from ..interfaces import LoggerServiceInterface
from ..models import Target, PeerCredential, ExpiryReport, Urgency


DEFAULT_LOG_LEVEL = "WARNING"


class LoggerService(LoggerServiceInterface):
    """日志服务实现"""

    def __init__(self, logger_name: str = "tlx", log_level: Optional[str] = None):
        """
        初始化日志服务

        Args:
            logger_name: 日志器名称
            log_level: 日志级别，如果为None则从环境变量读取
        """
        self.logger_name = logger_name
        self.log_level = log_level or os.getenv('LOG_LEVEL', DEFAULT_LOG_LEVEL)

        self.logger = logging.getLogger(logger_name)
        self._configure_logger()

        self.execution_stats = self._empty_stats()

    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.WARNING)
        self.logger.setLevel(level)

        # 避免重复添加处理器
        if not self.logger.handlers:
            # 输出到stderr，stdout只保留检查结果
            handler = logging.StreamHandler()
            handler.setLevel(level)

            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)

            self.logger.addHandler(handler)
        else:
            for handler in self.logger.handlers:
                handler.setLevel(level)

        self.logger.propagate = False

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            'start_time': None,
            'end_time': None,
            'target': None,
            'urgency': None,
            'errors': []
        }

    def log_check_start(self, target: Target):
        """
        记录检查开始

        Args:
            target: 检查目标
        """
        self.execution_stats['start_time'] = datetime.now(timezone.utc)
        self.execution_stats['target'] = target.address

        self.logger.info(f"开始检查 {target.address} 的TLS证书")

    def log_credential_info(self, target: Target, credential: PeerCredential):
        """记录对端出示的证书"""
        self.logger.debug(
            f"证书信息 - 目标: {target.address}, "
            f"主体: {credential.subject_name}, "
            f"颁发者: {credential.issuer_name or 'Unknown'}, "
            f"生效时间: {credential.not_before.isoformat() if credential.not_before else 'Unknown'}, "
            f"过期时间: {credential.not_after.isoformat()}"
        )

    def log_report(self, target: Target, report: ExpiryReport):
        """
        记录评估结果

        Args:
            target: 检查目标
            report: 评估结果
        """
        self.execution_stats['urgency'] = report.urgency.value

        if report.is_expired:
            self.logger.warning(
                f"证书已过期 - 目标: {target.address}, "
                f"主体: {report.subject_name}, "
                f"过期时间: {report.not_after.isoformat()}, "
                f"已过期: {abs(report.days_remaining):.2f} 天"
            )
        elif report.urgency is Urgency.OK:
            self.logger.info(
                f"证书正常 - 目标: {target.address}, "
                f"主体: {report.subject_name}, "
                f"过期时间: {report.not_after.isoformat()}, "
                f"剩余天数: {report.days_remaining:.2f} 天"
            )
        else:
            self.logger.warning(
                f"证书即将过期 ({report.urgency.value}) - 目标: {target.address}, "
                f"主体: {report.subject_name}, "
                f"过期时间: {report.not_after.isoformat()}, "
                f"剩余天数: {report.days_remaining:.2f} 天"
            )

    def log_error(self, target: Target, error: Exception):
        """
        记录错误信息

        Args:
            target: 检查目标
            error: 异常对象
        """
        error_info = {
            'target': target.address,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }

        self.execution_stats['errors'].append(error_info)

        self.logger.error(f"检查 {target.address} 时发生错误: {type(error).__name__}: {str(error)}")

        # 详细的堆栈跟踪（调试级别）
        self.logger.debug(f"{target.address} 错误堆栈跟踪:\n{traceback.format_exc()}")

    def log_check_end(self):
        """记录检查结束"""
        self.execution_stats['end_time'] = datetime.now(timezone.utc)

        summary = self.get_execution_summary()
        self.logger.info(f"检查完成，总执行时间: {summary['duration_seconds']:.2f} 秒")

    def log_notification_sent(self, notification_type: str, success: bool):
        """
        记录通知发送状态

        Args:
            notification_type: 通知类型（如 "SNS"）
            success: 是否发送成功
        """
        if success:
            self.logger.info(f"{notification_type} 通知发送成功")
        else:
            self.logger.error(f"{notification_type} 通知发送失败")

    def log_configuration_info(self, config: Dict[str, Any]):
        """
        记录配置信息

        Args:
            config: 配置信息字典
        """
        safe_config = self._sanitize_config(config)

        self.logger.debug("运行配置:")
        for key, value in safe_config.items():
            self.logger.debug(f"  {key}: {value}")

    def _sanitize_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        清理配置信息中的敏感数据

        Args:
            config: 原始配置

        Returns:
            Dict[str, Any]: 清理后的配置
        """
        safe_config = {}
        for key, value in config.items():
            key_lower = key.lower()

            is_sensitive = (
                key_lower == 'sns_topic_arn' or
                key_lower.endswith('_key') or
                key_lower.endswith('_secret') or
                key_lower.endswith('_token')
            )

            if is_sensitive and isinstance(value, str) and value:
                if value.startswith('arn:'):
                    # 只显示分区、区域和主题名
                    parts = value.split(':')
                    if len(parts) >= 6:
                        safe_value = f"{':'.join(parts[:4])}:***:{parts[-1]}"
                    else:
                        safe_value = "***"
                else:
                    safe_value = value[:3] + "***" if len(value) > 3 else "***"
                safe_config[key] = safe_value
            else:
                safe_config[key] = value

        return safe_config

    def get_execution_summary(self) -> Dict[str, Any]:
        """
        获取执行摘要

        Returns:
            Dict[str, Any]: 执行摘要信息
        """
        start_time = self.execution_stats['start_time']
        end_time = self.execution_stats['end_time']

        duration = 0
        if start_time and end_time:
            duration = (end_time - start_time).total_seconds()

        return {
            'start_time': start_time.isoformat() if start_time else None,
            'end_time': end_time.isoformat() if end_time else None,
            'duration_seconds': duration,
            'target': self.execution_stats['target'],
            'urgency': self.execution_stats['urgency'],
            'error_count': len(self.execution_stats['errors']),
            'errors': self.execution_stats['errors']
        }

    def reset_stats(self):
        """重置执行统计"""
        self.execution_stats = self._empty_stats()
