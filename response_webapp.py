#!/usr/bin/env python3
"""Run the response-model Flask API locally."""

from __future__ import annotations

from response.config import load_runtime_config
from response.webapp import create_app


def main() -> None:
    runtime = load_runtime_config()
    app = create_app(runtime)
    app.run(host=runtime.host, port=runtime.port, debug=runtime.debug)


if __name__ == "__main__":
    main()
