from enum import Enum
from typing import List, Optional

class Role(str, Enum):
    FAUCET = "faucet"
    IDENTITY = "identity"
    VOTE = "vote"
    STAKE = "stake"

class Provenance(str, Enum):
    REUSED = "reused"         # Copied verbatim from a caller-supplied file
    GENERATED = "generated"   # Fresh key material from the keygen tool

class BootstrapError(Exception):
    """Fatal pipeline failure. `stage` names the stage that aborted the run."""
    stage = "pipeline"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage

class FetchError(BootstrapError):
    stage = "fetch"

class ParseError(BootstrapError):
    stage = "slot"

class KeyProvisionError(BootstrapError):
    stage = "keys"

class WorkspaceError(BootstrapError):
    stage = "workspace"

class WorkspaceLockedError(WorkspaceError):
    pass

class ToolInvocationError(BootstrapError):
    def __init__(self,
                 tool: str,
                 argv: List[str],
                 returncode: Optional[int],
                 stderr: str = "",
                 stage: Optional[str] = None,
                 message: Optional[str] = None):
        self.tool = tool
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        if message is None:
            if returncode is None:
                message = f"{tool} could not be started"
            else:
                message = f"{tool} exited with code {returncode}"
            detail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
            if detail:
                message += f": {detail}"
        super().__init__(message, stage=stage)
