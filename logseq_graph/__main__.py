"""Entry point for ``python -m logseq_graph``."""

from logseq_graph import run_server

if __name__ == "__main__":
    run_server()
