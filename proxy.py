"""Launch the chatbridge server.

Usage:
    python proxy.py [--config configs/config_default.yaml]
"""

import argparse
import logging

import uvicorn

from chatbridge import create_app, load_config
from chatbridge.config_loader import server_settings

logger = logging.getLogger("chatbridge")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="OpenAI-compatible chat completions bridge to the Anthropic Messages API"
    )
    parser.add_argument("--config", help="Path to the YAML config (default: CHATBRIDGE_CONFIG)")
    parser.add_argument("--env-file", help="Path to a .env file used for substitution")
    args = parser.parse_args()

    config = load_config(args.config, env_path=args.env_file)
    app = create_app(config)
    host, port = server_settings(config)

    logger.info(f"Endpoint: http://{host}:{port}/v1/chat/completions")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
