"""Allow ``python -m agentlint``."""

from agentlint.cli.main import main

if __name__ == "__main__":
    main()
