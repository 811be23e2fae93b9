"""
TLS会话打开服务
"""
import ssl
import socket
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List
import logging

from cryptography import x509

from ..interfaces import SessionOpenerInterface
from ..models import Target, PeerCredential
from .error_handler import TLSConnectionError, NoCredentialError, CredentialDecodeError


@dataclass
class TLSSession:
    """已建立的TLS会话"""
    target: Target
    chain: List[bytes]
    connection: ssl.SSLSocket

    @property
    def leaf(self) -> bytes:
        """叶子证书（DER编码）"""
        if not self.chain:
            raise NoCredentialError(f"{self.target.address} 未出示任何证书", self.target)
        return self.chain[0]


class SessionOpener(SessionOpenerInterface):
    """TLS会话打开器实现

    默认不校验证书信任链：本工具用于检查服务器出示的任何证书，
    包括已过期、自签名或其他不受信任的证书。
    """

    def __init__(self, timeout: float = 10.0, verify_trust: bool = False,
                 minimum_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2):
        """
        初始化TLS会话打开器

        Args:
            timeout: 连接和握手超时时间（秒）
            verify_trust: 是否校验证书信任链，默认不校验
            minimum_version: 允许的最低TLS版本
        """
        self.timeout = timeout
        self.verify_trust = verify_trust
        self.minimum_version = minimum_version
        self.logger = logging.getLogger(__name__)

    def _create_context(self) -> ssl.SSLContext:
        """创建TLS上下文"""
        context = ssl.create_default_context()
        # 不做主机名校验
        context.check_hostname = False
        if not self.verify_trust:
            context.verify_mode = ssl.CERT_NONE
        context.minimum_version = self.minimum_version
        return context

    @contextmanager
    def open_session(self, target: Target) -> Iterator[TLSSession]:
        """
        建立到目标的TLS会话

        连接在退出上下文时关闭，无论是否发生异常。

        Args:
            target: 检查目标

        Yields:
            TLSSession: 会话及对端出示的证书链（叶子证书在前）

        Raises:
            TLSConnectionError: DNS解析、TCP连接或TLS握手失败，或主机名格式无效
        """
        context = self._create_context()

        self.logger.debug(f"连接 {target.address}，超时 {self.timeout} 秒，校验信任链: {self.verify_trust}")

        try:
            sock = socket.create_connection((target.host, target.port), timeout=self.timeout)
        except (OSError, ValueError) as e:
            raise TLSConnectionError(f"无法连接到 {target.address}: {e}", target) from e

        with sock:
            try:
                ssock = context.wrap_socket(sock, server_hostname=target.host)
            except (OSError, ValueError) as e:
                raise TLSConnectionError(f"与 {target.address} 的TLS握手失败: {e}", target) from e

            with ssock:
                self.logger.debug(f"已与 {target.address} 建立 {ssock.version()} 会话")
                yield TLSSession(target=target, chain=self._read_chain(ssock), connection=ssock)

    def _read_chain(self, ssock: ssl.SSLSocket) -> List[bytes]:
        """
        读取对端出示的证书链

        Args:
            ssock: 已完成握手的TLS套接字

        Returns:
            List[bytes]: DER编码的证书链，叶子证书在前
        """
        # Python 3.13+ 才提供完整的未验证证书链
        get_unverified_chain = getattr(ssock, 'get_unverified_chain', None)
        if get_unverified_chain is not None:
            return list(get_unverified_chain() or [])

        leaf = ssock.getpeercert(binary_form=True)
        return [leaf] if leaf else []

    def fetch_credential(self, target: Target) -> PeerCredential:
        """
        获取目标出示的叶子证书

        Args:
            target: 检查目标

        Returns:
            PeerCredential: 叶子证书信息

        Raises:
            TLSConnectionError: 连接或握手失败
            NoCredentialError: 对端未出示证书
            CredentialDecodeError: 叶子证书无法解析
        """
        with self.open_session(target) as session:
            leaf = session.leaf
            self.logger.debug(f"{target.address} 出示了 {len(session.chain)} 个证书")

        try:
            certificate = x509.load_der_x509_certificate(leaf)
        except ValueError as e:
            raise CredentialDecodeError(f"{target.address} 出示的证书无法解析: {e}", target) from e

        return PeerCredential(
            subject_name=certificate.subject.rfc4514_string(),
            not_after=certificate.not_valid_after_utc,
            issuer_name=certificate.issuer.rfc4514_string(),
            not_before=certificate.not_valid_before_utc
        )
