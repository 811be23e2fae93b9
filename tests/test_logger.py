"""
日志服务测试
"""
import pytest
import os
import logging
from unittest.mock import patch
from datetime import datetime, timezone, timedelta
from io import StringIO

from tlx.services.logger import LoggerService
from tlx.models import Target, PeerCredential, ExpiryReport, Urgency


NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_report(days: float, urgency: Urgency) -> ExpiryReport:
    return ExpiryReport(
        subject_name="example.com",
        not_after=NOW + timedelta(days=days),
        days_remaining=days,
        urgency=urgency,
        checked_at=NOW
    )


class TestLoggerService:
    """日志服务测试类"""

    def setup_method(self):
        """测试前准备"""
        self.logger_service = LoggerService(logger_name="test_logger")
        self.target = Target(host="example.com")

        # 捕获日志输出
        self.log_stream = StringIO()
        handler = logging.StreamHandler(self.log_stream)
        handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))

        self.logger_service.logger.handlers.clear()
        self.logger_service.logger.addHandler(handler)
        self.logger_service.logger.setLevel(logging.DEBUG)

    def teardown_method(self):
        """测试后清理"""
        self.logger_service.reset_stats()
        self.logger_service.logger.handlers.clear()

    def get_log_output(self) -> str:
        return self.log_stream.getvalue()

    @patch.dict(os.environ, {}, clear=True)
    def test_init_default_config(self):
        """测试默认配置初始化"""
        service = LoggerService(logger_name="default_logger")

        assert service.logger_name == "default_logger"
        assert service.log_level == "WARNING"
        assert service.logger.level == logging.WARNING
        assert service.logger.propagate is False
        assert len(service.logger.handlers) == 1

        service.logger.handlers.clear()

    @patch.dict(os.environ, {'LOG_LEVEL': 'DEBUG'})
    def test_init_with_env_log_level(self):
        """测试从环境变量读取日志级别"""
        service = LoggerService(logger_name="env_logger")

        assert service.log_level == "DEBUG"
        assert service.logger.level == logging.DEBUG

        service.logger.handlers.clear()

    def test_no_duplicate_handlers(self):
        """测试重复初始化不会重复添加处理器"""
        first = LoggerService(logger_name="dup_logger")
        second = LoggerService(logger_name="dup_logger", log_level="INFO")

        assert len(second.logger.handlers) == 1
        assert second.logger.handlers[0].level == logging.INFO

        first.logger.handlers.clear()

    def test_log_check_start(self):
        """测试记录检查开始"""
        self.logger_service.log_check_start(self.target)

        assert "开始检查 example.com:443 的TLS证书" in self.get_log_output()
        assert self.logger_service.execution_stats['target'] == "example.com:443"
        assert self.logger_service.execution_stats['start_time'] is not None

    def test_log_credential_info(self):
        """测试记录证书信息"""
        credential = PeerCredential(
            subject_name="CN=example.com",
            not_after=NOW,
            issuer_name="CN=Test CA"
        )

        self.logger_service.log_credential_info(self.target, credential)

        log_output = self.get_log_output()
        assert "DEBUG" in log_output
        assert "主体: CN=example.com" in log_output
        assert "颁发者: CN=Test CA" in log_output
        assert "生效时间: Unknown" in log_output

    def test_log_report_ok(self):
        """测试记录正常证书"""
        self.logger_service.log_report(self.target, make_report(90.0, Urgency.OK))

        log_output = self.get_log_output()
        assert "INFO - 证书正常" in log_output
        assert "剩余天数: 90.00 天" in log_output
        assert self.logger_service.execution_stats['urgency'] == "ok"

    def test_log_report_warning(self):
        """测试记录即将过期证书"""
        self.logger_service.log_report(self.target, make_report(15.5, Urgency.WARNING))

        log_output = self.get_log_output()
        assert "WARNING - 证书即将过期 (warning)" in log_output
        assert "剩余天数: 15.50 天" in log_output

    def test_log_report_expired(self):
        """测试记录已过期证书"""
        self.logger_service.log_report(self.target, make_report(-2.0, Urgency.CRITICAL))

        log_output = self.get_log_output()
        assert "WARNING - 证书已过期" in log_output
        assert "已过期: 2.00 天" in log_output

    def test_log_error(self):
        """测试记录错误"""
        error = ConnectionRefusedError("Connection refused")

        self.logger_service.log_error(self.target, error)

        log_output = self.get_log_output()
        assert "ERROR - 检查 example.com:443 时发生错误: ConnectionRefusedError: Connection refused" in log_output

        errors = self.logger_service.execution_stats['errors']
        assert len(errors) == 1
        assert errors[0]['error_type'] == "ConnectionRefusedError"

    def test_log_check_end(self):
        """测试记录检查结束"""
        self.logger_service.log_check_start(self.target)
        self.logger_service.log_check_end()

        assert "检查完成" in self.get_log_output()
        assert self.logger_service.execution_stats['end_time'] is not None

    def test_log_notification_sent(self):
        """测试记录通知发送状态"""
        self.logger_service.log_notification_sent("SNS", True)
        self.logger_service.log_notification_sent("SNS", False)

        log_output = self.get_log_output()
        assert "INFO - SNS 通知发送成功" in log_output
        assert "ERROR - SNS 通知发送失败" in log_output

    def test_log_configuration_info_masks_arn(self):
        """测试配置信息中的ARN被遮盖"""
        self.logger_service.log_configuration_info({
            'target': 'example.com:443',
            'sns_topic_arn': 'arn:aws:sns:us-east-1:123456789012:tlx-alerts'
        })

        log_output = self.get_log_output()
        assert "target: example.com:443" in log_output
        assert "arn:aws:sns:us-east-1:***:tlx-alerts" in log_output
        assert "123456789012" not in log_output

    @pytest.mark.parametrize("config, expected", [
        ({'api_token': 'abcdef'}, {'api_token': 'abc***'}),
        ({'aws_secret': 'ab'}, {'aws_secret': '***'}),
        ({'sns_topic_arn': 'arn:bad'}, {'sns_topic_arn': '***'}),
        ({'sns_topic_arn': ''}, {'sns_topic_arn': ''}),
        ({'timeout': 10.0}, {'timeout': 10.0}),
    ])
    def test_sanitize_config(self, config, expected):
        """测试敏感配置清理"""
        assert self.logger_service._sanitize_config(config) == expected

    def test_get_execution_summary(self):
        """测试获取执行摘要"""
        self.logger_service.log_check_start(self.target)
        self.logger_service.log_report(self.target, make_report(3.0, Urgency.CRITICAL))
        self.logger_service.log_check_end()

        summary = self.logger_service.get_execution_summary()

        assert summary['target'] == "example.com:443"
        assert summary['urgency'] == "critical"
        assert summary['error_count'] == 0
        assert summary['duration_seconds'] >= 0
        assert summary['start_time'] is not None

    def test_reset_stats(self):
        """测试重置统计"""
        self.logger_service.log_check_start(self.target)
        self.logger_service.reset_stats()

        summary = self.logger_service.get_execution_summary()
        assert summary['start_time'] is None
        assert summary['target'] is None
