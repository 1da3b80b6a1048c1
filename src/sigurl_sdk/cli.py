"""
Command-line interface for SigURL Python SDK
Provides key generation, URL signing, verification and inspection
"""

import argparse
import sys
import json
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import initialize_sdk, __version__
from .crypto.rsa import KeyFormat, PublicKeyFormat, generate_key_pair
from .exceptions import SigURLError
from .config.unified_config import (
    LoggingConfig,
    UnifiedConfigManager,
    configure_logging,
)
from .integration import SigURL
from .signing.signing_config import SignedURLConfig
from .verification.policies import CustomPolicy, IpAddressPolicy
from .verification.types import RequestContext


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='sigurl-cli',
        description='SigURL SDK command-line interface for RSA-SHA256 signed URLs'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'SigURL Python SDK {__version__}'
    )

    parser.add_argument(
        '--check-compatibility',
        action='store_true',
        help='Check platform compatibility and exit'
    )

    common = create_common_parser()

    # Create subparsers for different commands
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_keygen_parser(subparsers)
    setup_sign_parser(subparsers, common)
    setup_verify_parser(subparsers, common)
    setup_inspect_parser(subparsers, common)

    return parser


def create_common_parser() -> argparse.ArgumentParser:
    """Options shared by the commands that sign, verify or read URLs."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', help='Unified configuration file (JSON)')
    common.add_argument('--environment', help='Environment to use from the configuration file')
    common.add_argument('--prefix', help='Prefix of the reserved query parameters (default: X-Sig)')
    common.add_argument(
        '--encoding',
        choices=['hex', 'base64'],
        help='Signature text encoding (default: hex)'
    )
    common.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Log level for SDK messages'
    )
    return common


def setup_keygen_parser(subparsers):
    """Setup key generation subcommand."""
    keygen_parser = subparsers.add_parser('keygen', help='Generate an RSA key pair (PEM)')
    keygen_parser.add_argument(
        '--key-size',
        type=int,
        default=2048,
        help='RSA modulus size in bits (default: 2048)'
    )
    keygen_parser.add_argument(
        '--public-format',
        choices=['spki', 'pkcs1'],
        default='spki',
        help='Public key container (default: spki)'
    )
    keygen_parser.add_argument('--private-key-out', help='Write the private key to this file')
    keygen_parser.add_argument('--public-key-out', help='Write the public key to this file')
    keygen_parser.add_argument(
        '--private-only',
        action='store_true',
        help='Output only the private key'
    )
    keygen_parser.add_argument(
        '--public-only',
        action='store_true',
        help='Output only the public key'
    )


def setup_sign_parser(subparsers, common):
    """Setup URL signing subcommand."""
    sign_parser = subparsers.add_parser('sign', parents=[common], help='Sign a URL')
    sign_parser.add_argument('--private-key', required=True, help='RSA private key file (PEM or DER)')
    sign_parser.add_argument('--url', required=True, help='URL to sign')
    sign_parser.add_argument('--expires', required=True, type=int, help='Validity in seconds')
    sign_parser.add_argument('--date', help='Issue time as ISO 8601 (default: now)')

    ip_group = sign_parser.add_mutually_exclusive_group()
    ip_group.add_argument('--allow-ip', action='append', help='Only allow this client IP (repeatable)')
    ip_group.add_argument('--deny-ip', action='append', help='Deny this client IP (repeatable)')


def setup_verify_parser(subparsers, common):
    """Setup URL verification subcommand."""
    verify_parser = subparsers.add_parser('verify', parents=[common], help='Verify a signed URL')
    verify_parser.add_argument('--public-key', required=True, help='RSA public key or certificate file')
    verify_parser.add_argument('--url', required=True, help='Signed URL to verify')
    verify_parser.add_argument('--client-ip', help='Client IP checked against the IP address policy')
    verify_parser.add_argument('--json', action='store_true', help='Print the result as JSON')


def setup_inspect_parser(subparsers, common):
    """Setup URL inspection subcommand."""
    inspect_parser = subparsers.add_parser(
        'inspect',
        parents=[common],
        help='Print the claims of a signed URL without verifying them'
    )
    inspect_parser.add_argument('--url', required=True, help='Signed URL to inspect')


def build_config(args, **overrides) -> SignedURLConfig:
    """Build the signed URL configuration from the config file and flags."""
    if args.config:
        manager = UnifiedConfigManager.from_file(args.config, args.environment)
        configure_logging(manager.get_logging_config())
        config = manager.to_signed_url_config()
    else:
        config = SignedURLConfig()

    if args.log_level:
        configure_logging(LoggingConfig(level=args.log_level))

    options = {}
    if args.prefix:
        options['prefix'] = args.prefix
    if args.encoding:
        options['encoding'] = args.encoding
    options.update(overrides)

    return replace(config, **options) if options else config


def read_key_file(path: str) -> bytes:
    return Path(path).read_bytes()


def parse_issue_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 issue time; a trailing ``Z`` means UTC."""
    if value is None:
        return None
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


def handle_keygen_command(args) -> int:
    """Handle key generation command."""
    if args.private_only and args.public_only:
        print("Error: Cannot specify both --private-only and --public-only", file=sys.stderr)
        return 1

    key_pair = generate_key_pair(
        args.key_size,
        key_format=KeyFormat.PEM,
        public_format=PublicKeyFormat(args.public_format)
    )

    if args.private_key_out:
        Path(args.private_key_out).write_bytes(key_pair.private_key)
        print(f"Private key written to: {args.private_key_out}")
    elif not args.public_only:
        print(key_pair.private_key.decode('ascii'), end='')

    if args.public_key_out:
        Path(args.public_key_out).write_bytes(key_pair.public_key)
        print(f"Public key written to: {args.public_key_out}")
    elif not args.private_only:
        print(key_pair.public_key.decode('ascii'), end='')

    return 0


def handle_sign_command(args) -> int:
    """Handle URL signing command."""
    overrides = {}
    if args.allow_ip:
        overrides['custom_policy'] = CustomPolicy(ip_address=IpAddressPolicy.allow(args.allow_ip))
    elif args.deny_ip:
        overrides['custom_policy'] = CustomPolicy(ip_address=IpAddressPolicy.deny(args.deny_ip))

    try:
        issue_time = parse_issue_time(args.date)
    except ValueError:
        print(f"Error: Invalid --date value: {args.date}", file=sys.stderr)
        return 1

    sigurl = SigURL(
        private_key=read_key_file(args.private_key),
        config=build_config(args, **overrides)
    )
    print(sigurl.sign(args.url, issue_time, args.expires))
    return 0


def handle_verify_command(args) -> int:
    """Handle URL verification command."""
    sigurl = SigURL(
        public_key=read_key_file(args.public_key),
        config=build_config(args)
    )
    result = sigurl.check(args.url, RequestContext(client_ip=args.client_ip))

    if args.json:
        print(json.dumps({
            'status': result.status.value,
            'error': result.error,
        }, indent=2))
    elif result.is_valid:
        print("✓ VERIFIED")
        print(f"  Date: {result.signed_info.date.isoformat()}")
        print(f"  Expires At: {result.signed_info.expires_at.isoformat()}")
    else:
        print(f"✗ FAILED: {result.error['code']}")
        print(f"  {result.error['message']}")

    return 0 if result.is_valid else 1


def handle_inspect_command(args) -> int:
    """Handle URL inspection command."""
    sigurl = SigURL(config=build_config(args))
    info = sigurl.signed_info_from_url(args.url)

    claims = {
        'date': info.date.isoformat(),
        'expires': info.expires,
        'expires_at': info.expires_at.isoformat(),
        'message': info.message,
        'custom_policy': json.loads(info.custom_policy) if info.custom_policy else None,
    }
    print(json.dumps(claims, indent=2))
    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        # Check compatibility if requested
        if args.check_compatibility:
            result = initialize_sdk()
            if result['compatible']:
                print("✓ Platform is compatible with SigURL SDK")
                for warning in result['warnings']:
                    print(f"  Warning: {warning}")
                return 0
            else:
                print("✗ Platform is not compatible with SigURL SDK")
                for warning in result['warnings']:
                    print(f"  Error: {warning}")
                return 1

        # Handle commands
        if args.command == 'keygen':
            return handle_keygen_command(args)
        elif args.command == 'sign':
            return handle_sign_command(args)
        elif args.command == 'verify':
            return handle_verify_command(args)
        elif args.command == 'inspect':
            return handle_inspect_command(args)
        else:
            # No command specified, show help
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except SigURLError as e:
        print(f"Error [{e.error_code}]: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
