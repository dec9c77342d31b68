# __main__.py
import sys
import logging

# Configure logging right away – only keyword args allowed
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Entry point for the openfema command."""
    try:
        from openfema_client.cli import main as cli_main
        sys.exit(cli_main())
    except ModuleNotFoundError as e:
        logger.error("ModuleNotFoundError in __main__: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
