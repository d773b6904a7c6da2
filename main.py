import argparse
import asyncio
import sys
import uvicorn
from finchat.core.services.db_service import DatabaseService
from finchat.utils.logging import logger

async def check_database() -> bool:
    """Open the pool, run the health check and close it again."""
    db_service = DatabaseService()
    await db_service.open()
    try:
        return await db_service.check_health()
    finally:
        await db_service.close()

if __name__ == "__main__":

    parser = argparse.ArgumentParser(description='Finance Chat Assistant')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Server command
    server_parser = subparsers.add_parser('serve', help='Run the API server')
    server_parser.add_argument('--host', default='0.0.0.0', help='Host to run the server on')
    server_parser.add_argument('--port', type=int, default=8000, help='Port to run the server on')

    subparsers.add_parser('check-db', help='Check database connectivity')

    args = parser.parse_args()

    if args.command == 'serve':
        uvicorn.run("finchat.api.app:app", host=args.host, port=args.port)
    elif args.command == 'check-db':
        healthy = asyncio.run(check_database())
        logger.info(f"Database health check: {'PASSED' if healthy else 'FAILED'}")
        sys.exit(0 if healthy else 1)
    else:
        parser.print_help()
