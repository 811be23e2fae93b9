"""
命令行入口
"""
import argparse
import sys
from datetime import datetime, timezone
from typing import List, Optional

from .models import Target, ExpiryReport, DEFAULT_PORT
from .interfaces import SessionOpenerInterface, ExpiryEvaluatorInterface
from .services.config_validator import ConfigValidator
from .services.error_handler import TLXError, NetworkErrorHandler
from .services.expiry_evaluator import ExpiryEvaluator
from .services.logger import LoggerService
from .services.report_formatter import format_report
from .services.session_opener import SessionOpener
from .services.sns_notification import SNSNotificationService


VERSION = "1.2.0"

EXIT_OK = 0
EXIT_CRITICAL = 1
EXIT_FAILURE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tlx",
        description="Report how many days remain before a server's TLS certificate expires."
    )
    parser.add_argument("domain", help="Domain name to check")
    parser.add_argument("port", nargs="?", default=DEFAULT_PORT,
                        help=f"Port number (default: {DEFAULT_PORT})")
    parser.add_argument("--version", action="version", version=f"tlx {VERSION}")
    parser.add_argument("--timeout", default=None,
                        help="Connect and handshake timeout in seconds (default: $TLX_TIMEOUT or 10)")
    parser.add_argument("--verify", action="store_true",
                        help="Validate the certificate against the system trust store")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    parser.add_argument("--sns-topic-arn", default=None,
                        help="Publish an SNS alert for expiring certificates (default: $SNS_TOPIC_ARN)")
    parser.add_argument("--log-level", default=None,
                        help="Log level for stderr diagnostics (default: $LOG_LEVEL or WARNING)")
    return parser


def check_certificate(target: Target, opener: SessionOpenerInterface,
                      evaluator: ExpiryEvaluatorInterface,
                      logger_service: LoggerService) -> ExpiryReport:
    """
    检查目标证书并评估过期状态

    Args:
        target: 检查目标
        opener: TLS会话打开器
        evaluator: 过期评估器
        logger_service: 日志服务

    Returns:
        ExpiryReport: 评估结果

    Raises:
        TLXError: 连接失败或对端未出示有效证书
    """
    logger_service.log_check_start(target)

    credential = opener.fetch_credential(target)
    logger_service.log_credential_info(target, credential)

    # 评估和展示使用同一个时间快照
    now = datetime.now(timezone.utc)
    report = evaluator.evaluate(credential, now)

    logger_service.log_report(target, report)
    return report


def exit_code_for(report: ExpiryReport) -> int:
    return EXIT_CRITICAL if report.is_critical else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    命令行主函数

    Args:
        argv: 命令行参数，默认使用 sys.argv

    Returns:
        int: 进程退出码
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        target = Target(host=args.domain, port=args.port)
    except ValueError as e:
        parser.error(str(e))

    validator = ConfigValidator()
    env = validator.load_environment_defaults()
    settings = {
        'log_level': args.log_level or env['LOG_LEVEL'],
        'timeout': args.timeout or env['TLX_TIMEOUT'],
        'sns_topic_arn': args.sns_topic_arn or env['SNS_TOPIC_ARN'],
    }

    validation = validator.validate_settings(settings)
    if not validation['is_valid']:
        for error in validation['errors']:
            print(f"tlx: {error}", file=sys.stderr)
        return EXIT_FAILURE

    logger_service = LoggerService(log_level=settings['log_level'])
    for warning in validation['warnings']:
        logger_service.logger.warning(warning)

    timeout = validation['configurations']['timeout']['timeout']
    logger_service.log_configuration_info({
        'target': target.address,
        'timeout': timeout,
        'verify_trust': args.verify,
        'sns_topic_arn': settings['sns_topic_arn'] or '',
    })

    opener = SessionOpener(timeout=timeout, verify_trust=args.verify)
    evaluator = ExpiryEvaluator()

    try:
        report = check_certificate(target, opener, evaluator, logger_service)
    except TLXError as e:
        logger_service.log_error(target, e)
        error_info = NetworkErrorHandler().handle_connection_error(target, e)
        print(f"Error checking certificate: {e}", file=sys.stderr)
        print(f"Hint: {error_info['suggested_action']}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        logger_service.log_check_end()

    color = not args.no_color and sys.stdout.isatty()
    print(format_report(report, color=color))

    if settings['sns_topic_arn']:
        notifier = SNSNotificationService(topic_arn=settings['sns_topic_arn'])
        if notifier.should_notify(report):
            logger_service.log_notification_sent("SNS", notifier.send_expiry_notification(report))

    return exit_code_for(report)


def run():
    """控制台脚本入口"""
    sys.exit(main())
