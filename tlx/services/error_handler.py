"""
错误处理服务
"""
import socket
import ssl
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging

from ..models import Target


class TLXError(Exception):
    """证书检查错误基类"""

    def __init__(self, message: str, target: Optional[Target] = None):
        super().__init__(message)
        self.target = target


class TLSConnectionError(TLXError):
    """DNS解析、TCP连接或TLS握手失败"""


class NoCredentialError(TLXError):
    """握手成功但对端未出示任何证书"""


class CredentialDecodeError(TLXError):
    """对端出示的叶子证书无法解析"""


class NetworkErrorHandler:
    """网络错误处理器"""

    def __init__(self):
        """初始化网络错误处理器"""
        self.logger = logging.getLogger(__name__)

    def handle_connection_error(self, target: Target, error: Exception) -> Dict[str, Any]:
        """
        处理证书检查错误

        Args:
            target: 检查目标
            error: 异常对象

        Returns:
            Dict[str, Any]: 错误处理结果
        """
        cause = error.__cause__ if isinstance(error, TLXError) and error.__cause__ else error

        error_info = {
            'target': target.address,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'cause_type': type(cause).__name__,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(error)
        }

        self.logger.debug(
            f"目标 {target.address} 证书检查失败: {error_info['error_type']}: {error_info['error_message']}"
        )

        return error_info

    def _get_suggested_action(self, error: Exception) -> str:
        """
        获取错误的建议处理方案

        Args:
            error: 异常对象

        Returns:
            str: 建议的处理方案
        """
        if isinstance(error, NoCredentialError):
            return "服务器未出示证书，检查服务器TLS配置"
        if isinstance(error, CredentialDecodeError):
            return "服务器出示的证书格式无效，检查服务器证书配置"

        if isinstance(error, TLXError) and error.__cause__ is not None:
            error = error.__cause__

        error_message = str(error).lower()

        # socket.timeout 是 TimeoutError 的别名
        if isinstance(error, (socket.timeout, TimeoutError)):
            return "检查网络连接，考虑增加超时时间（--timeout）"
        elif isinstance(error, socket.gaierror):
            return "检查域名是否正确，DNS服务器是否可用"
        elif isinstance(error, ConnectionRefusedError):
            return "检查目标服务器是否运行，端口是否正确"
        elif isinstance(error, ssl.SSLCertVerificationError):
            return "证书验证失败，去掉 --verify 可检查不受信任的证书"
        elif isinstance(error, ssl.SSLError):
            if 'handshake failure' in error_message or 'version' in error_message:
                return "TLS握手失败，检查TLS版本兼容性（最低TLS 1.2）"
            return "TLS连接问题，检查服务器TLS配置"
        elif 'network is unreachable' in error_message:
            return "网络不可达，检查网络连接和路由"
        elif 'no route to host' in error_message:
            return "无法路由到主机，检查防火墙和网络配置"
        else:
            return "检查网络连接和服务器状态"
