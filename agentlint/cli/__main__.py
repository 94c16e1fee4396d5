"""Entry point for the agentlint CLI when run as python -m agentlint.cli."""

if __name__ == "__main__":
    from agentlint.cli.main import main

    main()
