"""
测试公共夹具
"""
import logging
import socket
import ssl
import threading
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


TEST_DOMAIN = "test.example.com"


def create_test_certificate(common_name: str, not_before: datetime, not_after: datetime):
    """生成自签名证书和私钥"""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])

    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.SubjectAlternativeName([x509.DNSName(common_name)]), critical=False)
        .sign(key, hashes.SHA256())
    )

    return certificate, key


class LocalTLSServer:
    """本地TLS测试服务器"""

    def __init__(self, cert_path: str, key_path: str):
        self.context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        self.context.load_cert_chain(cert_path, key_path)

        self.listener = socket.create_server(("127.0.0.1", 0))
        self.listener.settimeout(0.2)
        self.host = "127.0.0.1"
        self.port = str(self.listener.getsockname()[1])

        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self):
        self._thread.start()
        return self

    def _serve(self):
        while not self._stopped.is_set():
            try:
                conn, _ = self.listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return

            conn.settimeout(5)
            with conn:
                try:
                    with self.context.wrap_socket(conn, server_side=True) as tls_conn:
                        tls_conn.recv(1)
                except OSError:
                    # 客户端读取证书后直接断开
                    continue

    def close(self):
        self._stopped.set()
        self._thread.join(timeout=5)
        self.listener.close()


@pytest.fixture
def tls_server_factory(tmp_path):
    """按指定有效期启动本地TLS服务器"""
    servers = []

    def factory(not_after_offset: timedelta, common_name: str = TEST_DOMAIN,
                not_before_offset: timedelta = timedelta(days=-1)):
        now = datetime.now(timezone.utc)
        certificate, key = create_test_certificate(
            common_name, now + not_before_offset, now + not_after_offset
        )

        cert_path = tmp_path / f"cert-{len(servers)}.pem"
        key_path = tmp_path / f"key-{len(servers)}.pem"
        cert_path.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))
        key_path.write_bytes(key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption()
        ))

        server = LocalTLSServer(str(cert_path), str(key_path)).start()
        servers.append(server)
        return server, certificate

    yield factory

    for server in servers:
        server.close()


@pytest.fixture(autouse=True)
def reset_tlx_logger():
    """每个测试后清理 tlx 日志处理器"""
    yield
    logging.getLogger("tlx").handlers.clear()
