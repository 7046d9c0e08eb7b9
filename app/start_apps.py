"""
Development launcher for the API server, the Celery worker and Celery beat.
Runs each in its own process and stops all of them when one exits.
"""

import multiprocessing
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import List

# Add the parent directory to Python path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from redis.exceptions import RedisError

from app.config.settings import settings
from app.utils.logging import get_logger

logger = get_logger()

PROJECT_ROOT = str(Path(__file__).parent.parent)

SERVICES = {
    "FastAPI": [
        "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", "8000",
    ],
    "CeleryWorker": [
        "-m", "celery", "-A", "app.celery", "worker", "--loglevel=info",
    ],
    "CeleryBeat": [
        "-m", "celery", "-A", "app.celery", "beat", "--loglevel=info",
    ],
}


def setup_signal_handlers():
    """Setup signal handlers for graceful shutdown"""

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, initiating shutdown...")
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


def run_service(name: str, args: List[str]):
    """Run one service as a child process until it exits"""
    try:
        logger.info(f"Starting {name} process")
        subprocess.run([sys.executable, *args], check=True, cwd=PROJECT_ROOT)
    except subprocess.CalledProcessError as e:
        logger.error(f"{name} process failed with return code {e.returncode}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info(f"{name} process interrupted by user")


def check_redis_connection() -> bool:
    """Check if the Redis broker and store are reachable"""
    from app.db.redis_client import get_redis_client

    try:
        get_redis_client().ping()
        logger.info("Redis connection successful")
        return True
    except RedisError as e:
        logger.error(f"Redis connection failed: {e}")
        logger.error("Please ensure Redis server is running")
        return False


def monitor_processes(processes):
    """Stop everything as soon as one service dies"""
    logger.info("Starting process monitoring")

    while True:
        for process in processes:
            if not process.is_alive():
                logger.error(
                    f"{process.name} process died unexpectedly with exit code: {process.exitcode}"
                )
                terminate_processes(processes)
                sys.exit(1)

        time.sleep(1)


def terminate_processes(processes):
    """Gracefully terminate all processes"""
    logger.info("Initiating graceful shutdown of all services")

    for process in processes:
        if process.is_alive():
            logger.info(f"Terminating {process.name} process")
            process.terminate()

    for process in processes:
        process.join(timeout=10)
        if process.is_alive():
            logger.warning(f"{process.name} did not terminate gracefully, force killing")
            process.kill()
            process.join()
        else:
            logger.info(f"{process.name} terminated successfully")


def main():
    """Start and supervise the API server, worker and beat"""
    multiprocessing.freeze_support()
    setup_signal_handlers()

    logger.info("=" * 60)
    logger.info(f"Starting {settings.NAME} (FastAPI + Celery worker + Celery beat)")
    logger.info("=" * 60)
    logger.info("Press Ctrl+C to stop all services")

    needs_redis = "redis" in (settings.JOB_BACKEND, settings.NOTIFICATION_STORE_BACKEND)
    if needs_redis and not check_redis_connection():
        logger.error("Cannot start services without Redis connection")
        sys.exit(1)

    # The in-process job backend runs jobs inside the API server
    names = list(SERVICES) if settings.JOB_BACKEND == "redis" else ["FastAPI"]

    processes = []
    try:
        for name in names:
            process = multiprocessing.Process(
                target=run_service, args=(name, SERVICES[name]), name=name, daemon=False
            )
            process.start()
            processes.append(process)

        logger.info(f"Started: {', '.join(names)}")
        logger.info("FastAPI documentation: http://localhost:8000/docs")
        logger.info("-" * 60)

        monitor_processes(processes)

    except KeyboardInterrupt:
        logger.info("Shutdown signal received")
    finally:
        terminate_processes(processes)
        logger.info("All services stopped successfully")


if __name__ == "__main__":
    main()
