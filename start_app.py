#!/usr/bin/env python
"""Start the proxy on $PORT (default 3000)."""
import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 3000))

    print(f"Speedy proxy running on {port}")

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=port,
        log_level="info",
    )
