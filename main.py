import sys
import os
import logging

from azure_management import Azure

logger = logging.getLogger(__name__)

USAGE = (
    "Usage: python main.py [run|cleanup]\n"
    "  run      create, tag, list and delete availability sets, then delete the resource group\n"
    "  cleanup  delete recorded resource groups and every rgCOMA* group in the subscription,\n"
    "           including groups of sample runs still in progress"
)


def main(argv):
    configure_logging()
    command = argv[1] if len(argv) > 1 else "run"
    if command not in ("run", "cleanup"):
        print(USAGE)
        return 1
    try:
        az = Azure()
        if command == "run":
            az.run_sample()
        else:
            az.delete_all_rg()
    except Exception:
        logger.exception("Sample did not complete")
    return 0


def configure_logging():
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # azure.core logs every request and response at INFO
    logging.getLogger("azure").setLevel(logging.WARNING)


def cli():
    try:
        sys.exit(main(sys.argv))
    except KeyboardInterrupt:
        print("\n\nEnding...\n")
        os._exit(0)


if __name__ == "__main__":
    cli()
