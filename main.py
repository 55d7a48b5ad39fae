from moddepupdater.logger import setup_logger
from moddepupdater.cli import main


if __name__ == "__main__":
    setup_logger()
    main()
