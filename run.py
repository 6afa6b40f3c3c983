import subprocess
import sys
import time

from dietcraft.core.logging_config import get_logger, setup_logging

setup_logging()
logger = get_logger("run")


def run():
    logger.info("🚀 Starting DietCraft...")

    # 1. Start Backend
    logger.info("➡️  Starting Backend API (Uvicorn)...")
    backend = subprocess.Popen(
        ["uvicorn", "dietcraft.main:app", "--reload", "--port", "8000"],
        stdout=sys.stdout,
        stderr=sys.stderr
    )

    time.sleep(2)

    # 2. Start Frontend
    logger.info("➡️  Starting Frontend UI (Streamlit)...")
    frontend = subprocess.Popen(
        ["streamlit", "run", "dietcraft/frontend.py", "--server.port", "8501"],
        stdout=sys.stdout,
        stderr=sys.stderr
    )

    logger.info("✅ DietCraft is running:")
    logger.info("   👉 UI:  http://localhost:8501")
    logger.info("   👉 API: http://localhost:8000")
    logger.info("Press Ctrl+C to stop everything.")

    try:
        backend.wait()
        frontend.wait()
    except KeyboardInterrupt:
        logger.info("🛑 Stopping DietCraft...")
        backend.terminate()
        frontend.terminate()
        logger.info("Done.")


if __name__ == "__main__":
    run()
