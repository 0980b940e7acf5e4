#!/usr/bin/env python3
"""Run script for usergate."""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "usergate.api.app:app",
        host="0.0.0.0",
        port=3333,
        reload=True
    )
