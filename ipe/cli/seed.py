"""CLI entry point for seeding demo data.

Usage:
    python -m ipe.cli.seed

Exit Codes:
    0 - Success: demo data seeded, or database already populated
    1 - Failure: error encountered; database state unchanged

Logging:
    INFO level logs to both stdout and logs/seed.log
"""

import sys

from ipe.services.logging import setup_logging


def main() -> int:
    """
    Main entry point for the seeding CLI.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    logger = setup_logging()
    try:
        logger.info("Starting demo data seed...")

        from ipe.models import Base
        from ipe.services import SessionLocal, engine
        from ipe.services.config import get_settings
        from ipe.services.seeding import DemoSeedService

        settings = get_settings()
        Base.metadata.create_all(bind=engine)

        db = SessionLocal()
        try:
            result = DemoSeedService(db, settings.initial_password, logger).execute_seed()
            return 0 if result.success else 1
        finally:
            db.close()

    except KeyboardInterrupt:
        logger.warning("Seed interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Seed failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
