from __future__ import annotations

from matchimport.settings import get_server_address
from matchimport.web.app import create_app


def main() -> int:
    app = create_app()
    host, port = get_server_address()
    app.run(host=host, port=port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
