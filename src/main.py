"""Main entry point for the lacrosse tracker gamification engine"""
import logging
import asyncio
from typing import Optional

from src.config import validate_config, LOG_LEVEL, ENABLE_PROMETHEUS, PROMETHEUS_PORT
from src.db.store import DocumentStore, InMemoryDocumentStore
from src.observability.metrics import init_metrics
from src.observability.sentry_config import init_sentry, shutdown_sentry
from src.services.container import ServiceContainer, init_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def bootstrap(store: Optional[DocumentStore] = None) -> ServiceContainer:
    """
    Validate configuration, start observability and build the service container

    Args:
        store: Document store backend; in-memory when not given
    """
    logger.info("Validating configuration...")
    validate_config()

    init_sentry()
    init_metrics()

    if ENABLE_PROMETHEUS:
        from prometheus_client import start_http_server
        start_http_server(PROMETHEUS_PORT)
        logger.info(f"Prometheus metrics exposed on port {PROMETHEUS_PORT}")

    if store is None:
        logger.warning("No document store configured, using in-memory store")
        store = InMemoryDocumentStore()

    return init_container(store)


async def main() -> None:
    """Main application entry point"""
    try:
        bootstrap()
        logger.info("Gamification engine ready. Press Ctrl+C to stop.")

        # Keep running until interrupted
        await asyncio.Event().wait()

    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
    finally:
        shutdown_sentry()
        logger.info("Shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
