import typer
import logging
import sys

from velero_e2e.logging import configure_logging
from velero_e2e.commands import install, uninstall, backup, restore, location

# Create a callback for global options
app = typer.Typer()

# Global debug flag
debug_mode = False

# Add all command groups
app.command("install")(install.install)
app.command("uninstall")(uninstall.uninstall)
app.add_typer(backup.app, name="backup")
app.add_typer(restore.app, name="restore")
app.add_typer(location.app, name="location")


# Global options callback
@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """velero-e2e - Velero install, backup and restore harness."""
    global debug_mode
    debug_mode = debug
    configure_logging(debug)
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Debug mode enabled")


if __name__ == "__main__":
    try:
        app()
    except Exception as e:
        if debug_mode:
            import traceback
            logging.error(f"Unhandled exception: {e}\n{traceback.format_exc()}")
        else:
            logging.error(f"Error: {e}")
        sys.exit(1)
