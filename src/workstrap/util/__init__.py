from .shell import CmdResult, run_cmd, which

__all__ = ["CmdResult", "run_cmd", "which"]
