#!/usr/bin/env python3
"""
Microprediction command line client.

Reads streams and account state from microprediction.org and submits
scenario sets.

Usage:
    python main.py value cop.json             # Latest value
    python main.py lagged cop.json            # Lagged history, oldest first
    python main.py balance                    # Needs MICROPREDICTION_WRITE_KEY
    python main.py --config my.yaml summary cop.json
"""

import asyncio
import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

import aiohttp
import yaml
from dotenv import load_dotenv
from loguru import logger

from microprediction import MicropredictionClient, MicropredictionError, ValidationError, load_config
from microprediction.config import BASE_URL, CONFIG_URL, WRITE_KEY_ENV


def default_settings() -> dict:
    """Return default local settings"""
    return {
        'api': {
            'base_url': BASE_URL,
            'config_url': CONFIG_URL,
            'timeout': 30,
        },
        'logging': {
            'level': 'INFO'
        }
    }


def load_settings(config_path: str) -> dict:
    """Load local settings from YAML, then apply environment overrides"""
    load_dotenv()

    settings = default_settings()
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            loaded = yaml.safe_load(f) or {}
        for section, values in loaded.items():
            if isinstance(values, dict):
                settings.setdefault(section, {}).update(values)
            else:
                settings[section] = values
    else:
        logger.warning(f"Config file not found: {config_path}, using defaults")

    if os.getenv('MICROPREDICTION_BASE_URL'):
        settings['api']['base_url'] = os.getenv('MICROPREDICTION_BASE_URL')
    if os.getenv('LOG_LEVEL'):
        settings['logging']['level'] = os.getenv('LOG_LEVEL')
    settings['api']['write_key'] = os.getenv(WRITE_KEY_ENV)

    return settings


def setup_logging(settings: dict):
    """Configure logging"""
    log_config = settings.get('logging', {})
    level = log_config.get('level', 'INFO')

    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )

    log_file = log_config.get('file')
    if log_file:
        logger.add(
            log_file,
            level=level,
            rotation="10 MB",
            retention="7 days"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Microprediction - stream and prediction client"
    )
    parser.add_argument(
        '--config', '-c',
        default='config.yaml',
        help='Path to configuration file'
    )
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('config', help='Show the service configuration')

    for name, help_text in (
        ('value', 'Latest value of a stream'),
        ('lagged', 'Lagged history of a stream'),
        ('summary', 'Stream summary'),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('stream')

    p = sub.add_parser('leaderboard', help='Leaderboard for a stream')
    p.add_argument('stream')
    p.add_argument('--delay', type=int, default=None)

    sub.add_parser('balance', help='Balance of the write key')
    sub.add_parser('errors', help='Errors recorded against the write key')
    sub.add_parser('active', help='Streams with live submissions')

    p = sub.add_parser('submit', help='Submit a scenario set')
    p.add_argument('stream')
    p.add_argument('values_file', help='File with one value per line')
    p.add_argument('--delay', type=int, default=None)

    p = sub.add_parser('cancel', help='Cancel a submission')
    p.add_argument('stream')
    p.add_argument('--delay', type=int, default=None)

    return parser


def read_values(path: str) -> list:
    """One float per non-blank line"""
    try:
        with open(path) as f:
            lines = [line.strip() for line in f if line.strip()]
    except OSError as e:
        raise ValidationError(f"cannot read values file {path}: {e}") from e

    values = []
    for number, line in enumerate(lines, start=1):
        try:
            values.append(float(line))
        except ValueError:
            raise ValidationError(f"{path}: value {number} is not a number: {line!r}") from None
    return values


async def run_command(client: MicropredictionClient, args: argparse.Namespace) -> Any:
    command = args.command
    if command == 'config':
        cfg = client.config
        return {
            'base_url': cfg.base_url,
            'num_predictions': cfg.num_predictions,
            'delays': list(cfg.delays),
            'min_balance': cfg.min_balance,
            'min_len': cfg.min_len,
            'write_key': bool(cfg.write_key),
        }
    if command == 'value':
        return await client.get_current_value(args.stream)
    if command == 'lagged':
        series = await client.get_lagged(args.stream)
        return [[p.timestamp.isoformat(), p.value] for p in series]
    if command == 'summary':
        return (await client.get_summary(args.stream)).data
    if command == 'leaderboard':
        return await client.get_leaderboard(args.stream, args.delay)
    if command == 'balance':
        return await client.get_balance()
    if command == 'errors':
        return await client.get_errors()
    if command == 'active':
        return await client.get_active()
    if command == 'submit':
        return await client.submit(args.stream, read_values(args.values_file), args.delay)
    if command == 'cancel':
        return await client.cancel(args.stream, args.delay)
    raise ValueError(f"unknown command {command}")


async def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)
    setup_logging(settings)

    api = settings['api']
    timeout = aiohttp.ClientTimeout(total=float(api.get('timeout', 30)))
    async with aiohttp.ClientSession(timeout=timeout) as session:
        try:
            config = await load_config(
                session,
                write_key=api.get('write_key'),
                config_url=api['config_url'],
                base_url=api['base_url'],
            )
            client = MicropredictionClient(config, session=session)
            result = await run_command(client, args)
        except MicropredictionError as e:
            logger.error(f"{args.command} failed: {e}")
            return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
