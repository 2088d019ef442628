"""
PocketCal
Main application entry point
"""
import atexit
import logging
import subprocess
import sys
import tkinter as tk

import config
from gui import PocketCalGUI
from logging_config import setup_logging

logger = logging.getLogger(__name__)

# Global variable to track API process
api_process = None


def start_api_server():
    """Start the Flask API server in a separate process"""
    global api_process
    try:
        api_process = subprocess.Popen(
            [sys.executable, "-m", "api"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            creationflags=subprocess.CREATE_NEW_CONSOLE if sys.platform == 'win32' else 0
        )
    except OSError as e:
        logger.error("failed to start API server: %s", e)
        return
    logger.info("API server started (PID: %s)", api_process.pid)
    print("="*60)
    print("POCKETCAL WEB PORTAL IS LIVE")
    print(f"Access on this PC: http://localhost:{config.WEB_PORT}/api")
    print("="*60)


def cleanup_api_server():
    """Terminate the API server when the main application exits"""
    global api_process
    if api_process:
        try:
            api_process.terminate()
            api_process.wait(timeout=5)
            logger.info("API server stopped")
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error("error stopping API server: %s", e)
        api_process = None


def main():
    setup_logging(config.LOG_LEVEL, json_format=config.LOG_JSON)

    if config.START_WEB_PORTAL or "--web" in sys.argv[1:]:
        start_api_server()
        # Register cleanup function to run on exit
        atexit.register(cleanup_api_server)

    root = tk.Tk()
    PocketCalGUI(root)
    root.mainloop()

    cleanup_api_server()


if __name__ == "__main__":
    main()
