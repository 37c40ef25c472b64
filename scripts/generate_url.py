#!/usr/bin/env python3
"""Generate a presigned upload or read URL from a provider configuration file."""

from __future__ import annotations

import argparse
import json
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from multibucket.services.storage import MultiBucketError, MultiBucketSession, UrlService  # noqa: E402


def parse_args(argv=None):
    p = argparse.ArgumentParser(description='Generate presigned URLs across configured storage providers')
    p.add_argument('--config', required=True, help='Path to the JSON provider configuration')
    p.add_argument('--strategy', default=None, help='Override loadBalanceStrategy from the config')
    sub = p.add_subparsers(dest='command', required=True)

    upload = sub.add_parser('upload', help='Presigned PUT URL for a new object')
    upload.add_argument('--filename', required=True)
    upload.add_argument('--content-type', required=True)
    upload.add_argument('--path', default=None)
    upload.add_argument('--expiry', type=int, default=None)
    upload.add_argument('--provider-id', default=None)

    read = sub.add_parser('read', help='Presigned GET URL for an existing object')
    read.add_argument('--key', required=True)
    read.add_argument('--bucket', default=None)
    read.add_argument('--provider-id', default=None)
    read.add_argument('--expiry', type=int, default=None)
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    try:
        with open(args.config, 'r', encoding='utf-8') as f:
            payload = json.load(f)
        session = MultiBucketSession()
        session.update_config(payload)
        if args.strategy:
            session.apply_config([], strategy=args.strategy)
        service = UrlService(session)

        if args.command == 'upload':
            result = service.generate_upload_url(
                args.filename,
                args.content_type,
                expiry_seconds=args.expiry,
                path_prefix=args.path,
                provider_id=args.provider_id,
            )
        else:
            result = service.generate_read_url(
                args.key,
                bucket=args.bucket,
                provider_id=args.provider_id,
                expiry_seconds=args.expiry,
            )
    except (OSError, ValueError, MultiBucketError) as exc:
        print(f'ERROR: {exc}', file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
