"""FastAPI application and command line entry point."""

import argparse
import logging
from typing import List, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, HTTPException

from .config import ProcessDefaults, get_process_defaults
from .utils import log_admission_request
from .webhook import InvalidAdmissionReview, process_admission_request

LOG_FORMAT = '[%(asctime)s] %(levelname)s: %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

logger = logging.getLogger("webhook")

app = FastAPI(title="Fluentd Sidecar Injector")


@app.get("/")
async def health():
    return {"status": "healthy"}


@app.post("/mutate")
def mutate(request: dict = Body(...), defaults: ProcessDefaults = Depends(get_process_defaults)):
    logger.info("Received admission request")
    log_admission_request(request)
    try:
        return process_admission_request(request, defaults)
    except InvalidAdmissionReview as e:
        logger.warning(f"Rejecting malformed admission request: {e}")
        raise HTTPException(status_code=400, detail=str(e))


def configure_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


def log_process_defaults(defaults: ProcessDefaults) -> None:
    logger.info(
        f"Sidecar defaults: image={defaults.docker_image} "
        f"aggregator={defaults.aggregator_host or '<unset>'}:{defaults.aggregator_port} "
        f"log_dir={defaults.application_log_dir or '<unset>'}"
    )
    if not defaults.aggregator_host:
        logger.warning("AGGREGATOR_HOST is not set, Pods must provide the aggregator-host annotation")
    if not defaults.application_log_dir:
        logger.warning("APPLICATION_LOG_DIR is not set, Pods must provide the application-log-dir annotation")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Kubernetes mutating webhook injecting a fluentd sidecar",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--tls-cert-file", help="TLS certificate file")
    parser.add_argument("--tls-key-file", help="TLS private key file")
    parser.add_argument("--host", default="0.0.0.0", help="Address to listen on")
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set the logging level",
    )
    args = parser.parse_args(argv)
    if bool(args.tls_cert_file) != bool(args.tls_key_file):
        parser.error("--tls-cert-file and --tls-key-file must be given together")
    return args


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)

    log_process_defaults(get_process_defaults())

    logger.info(f"Listening on {args.host}:{args.port}")
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        ssl_certfile=args.tls_cert_file,
        ssl_keyfile=args.tls_key_file,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
