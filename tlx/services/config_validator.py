"""
配置验证服务
"""
import math
import os
import re
from typing import Dict, Any, Optional
import logging


DEFAULT_TIMEOUT = 10.0

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigValidator:
    """配置验证器"""

    def __init__(self):
        """初始化配置验证器"""
        self.logger = logging.getLogger(__name__)

        # 可选的环境变量
        self.optional_env_vars = {
            'LOG_LEVEL': '日志级别',
            'TLX_TIMEOUT': '连接超时时间（秒）',
            'SNS_TOPIC_ARN': 'SNS主题ARN',
            'AWS_REGION': 'AWS区域'
        }

        self.arn_pattern = re.compile(
            r'^arn:aws[a-zA-Z-]*:sns:[a-z0-9-]+:\d{12}:[a-zA-Z0-9_-]{1,256}$'
        )

    def load_environment_defaults(self) -> Dict[str, Optional[str]]:
        """
        读取环境变量中的默认配置

        Returns:
            Dict[str, Optional[str]]: 变量名到取值的映射，未设置时为None
        """
        return {name: os.getenv(name) or None for name in self.optional_env_vars}

    def validate_settings(self, settings: Dict[str, Any]) -> Dict[str, Any]:
        """
        验证所有配置

        Args:
            settings: 包含 log_level、timeout、sns_topic_arn 的配置字典

        Returns:
            Dict[str, Any]: 验证结果
        """
        validation_result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'configurations': {}
        }

        checks = {
            'log_level': self.validate_log_level(settings.get('log_level')),
            'timeout': self.validate_timeout(settings.get('timeout')),
            'sns': self.validate_sns_configuration(settings.get('sns_topic_arn'))
        }

        for name, result in checks.items():
            validation_result['configurations'][name] = result
            if not result['is_valid']:
                validation_result['is_valid'] = False
                validation_result['errors'].extend(result['errors'])
            validation_result['warnings'].extend(result['warnings'])

        return validation_result

    def validate_log_level(self, log_level: Optional[str]) -> Dict[str, Any]:
        """验证日志级别"""
        result = {'is_valid': True, 'errors': [], 'warnings': [], 'log_level': log_level}

        if log_level is not None and log_level.upper() not in VALID_LOG_LEVELS:
            result['is_valid'] = False
            result['errors'].append(
                f"无效的日志级别: {log_level}（可选值: {', '.join(VALID_LOG_LEVELS)}）"
            )

        return result

    def validate_timeout(self, timeout: Any) -> Dict[str, Any]:
        """
        验证超时配置

        Args:
            timeout: 超时时间，数字或字符串

        Returns:
            Dict[str, Any]: 验证结果，timeout 为转换后的浮点数
        """
        result = {'is_valid': True, 'errors': [], 'warnings': [], 'timeout': DEFAULT_TIMEOUT}

        if timeout is None:
            return result

        try:
            value = float(timeout)
        except (TypeError, ValueError):
            result['is_valid'] = False
            result['errors'].append(f"超时时间必须是数字: {timeout}")
            return result

        if not math.isfinite(value):
            result['is_valid'] = False
            result['errors'].append(f"超时时间必须是有限的数字: {timeout}")
            return result

        if value <= 0:
            result['is_valid'] = False
            result['errors'].append(f"超时时间必须大于0: {timeout}")
            return result

        if value > 300:
            result['warnings'].append(f"超时时间过长: {value} 秒")

        result['timeout'] = value
        return result

    def validate_sns_configuration(self, topic_arn: Optional[str]) -> Dict[str, Any]:
        """
        验证SNS配置

        Args:
            topic_arn: SNS主题ARN，为空时表示不发送通知

        Returns:
            Dict[str, Any]: SNS配置验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'enabled': bool(topic_arn),
            'region': None
        }

        if not topic_arn:
            return result

        if not self.arn_pattern.match(topic_arn):
            result['is_valid'] = False
            result['errors'].append(f"SNS主题ARN格式无效: {topic_arn}")
            return result

        result['region'] = topic_arn.split(':')[3]
        return result
