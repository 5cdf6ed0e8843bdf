"""
Management Script

Database setup and staff operations for the ordering backend.
Run from project root:

    python scripts/manage.py init-db
    python scripts/manage.py seed
    python scripts/manage.py set-status ORD3F9A0C2B7D114E55 in_kitchen
    python scripts/manage.py fulfil-request 2
    python scripts/manage.py serve --reload
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import uvicorn

from lunadine.core.config import get_logger, get_settings, setup_logging
from lunadine.core.exceptions import LunaDineError
from lunadine.database import async_session_maker, engine, init_db
from lunadine.models import OrderStatus
from lunadine.seed import seed_sample_data
from lunadine.services.orders import update_order_status
from lunadine.services.service_requests import fulfil_service_request

logger = get_logger("lunadine.manage")


async def cmd_init_db(args: argparse.Namespace) -> int:
    await init_db()
    print("✅ Tables created")
    return 0


async def cmd_seed(args: argparse.Namespace) -> int:
    await init_db()
    async with async_session_maker() as session:
        inserted = await seed_sample_data(session)
    print("✅ Sample data inserted" if inserted else "ℹ️  Database already has branches, nothing to do")
    return 0


async def cmd_set_status(args: argparse.Namespace) -> int:
    async with async_session_maker() as session:
        order = await update_order_status(session, args.order_uid, OrderStatus(args.status))
    print(f"✅ Order {order.order_uid} is now {order.status.value}")
    return 0


async def cmd_fulfil_request(args: argparse.Namespace) -> int:
    async with async_session_maker() as session:
        service_request = await fulfil_service_request(session, args.request_id)
    print(f"✅ Service request #{service_request.id} fulfilled")
    return 0


async def run_command(handler, args: argparse.Namespace) -> int:
    try:
        return await handler(args)
    except LunaDineError as e:
        print(f"❌ {e.message}")
        return 1
    finally:
        await engine.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Luna Dine management commands")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create all tables").set_defaults(handler=cmd_init_db)
    subparsers.add_parser("seed", help="Create tables and load sample data").set_defaults(handler=cmd_seed)

    status_parser = subparsers.add_parser("set-status", help="Move an order along its workflow")
    status_parser.add_argument("order_uid")
    status_parser.add_argument("status", choices=[s.value for s in OrderStatus])
    status_parser.set_defaults(handler=cmd_set_status)

    fulfil_parser = subparsers.add_parser("fulfil-request", help="Mark a service request fulfilled")
    fulfil_parser.add_argument("request_id", type=int)
    fulfil_parser.set_defaults(handler=cmd_fulfil_request)

    serve_parser = subparsers.add_parser("serve", help="Run the API with uvicorn")
    serve_parser.add_argument("--reload", action="store_true")
    serve_parser.set_defaults(handler=None)

    return parser


def main() -> int:
    args = build_parser().parse_args()
    setup_logging()

    if args.command == "serve":
        settings = get_settings()
        logger.info(f"Serving on {settings.api_host}:{settings.api_port}")
        uvicorn.run(
            "lunadine.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=args.reload,
        )
        return 0

    return asyncio.run(run_command(args.handler, args))


if __name__ == "__main__":
    sys.exit(main())
