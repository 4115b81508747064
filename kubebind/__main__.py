"""
CLI entry point, when used as a module: `python -m kubebind`.

Useful for debugging in the IDEs (use the start-mode "Module", module "kubebind").
"""
from kubebind import cli

if __name__ == '__main__':
    cli.main()
