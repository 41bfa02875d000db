"""Launch script for the AoE4 Versus API."""

import logging

import uvicorn


def main():
    """Start the API server."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("=" * 70)
    print("AoE4 Versus API")
    print("=" * 70)
    print("\nStarting server...")
    print("Open http://localhost:8000/docs in your browser")
    print("\nPress Ctrl+C to stop the server")
    print("=" * 70 + "\n")

    uvicorn.run(
        "aoe4_versus.api.app:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info"
    )


if __name__ == "__main__":
    main()
