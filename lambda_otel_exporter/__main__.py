from __future__ import annotations

from lambda_otel_exporter.cli import main

if __name__ == "__main__":
    main()
