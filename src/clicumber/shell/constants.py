"""Shared constants for the exit-code probe protocol."""

# Marker printed by the probe command after every user command.
# A line "exitCodeOfLastCommandInShell=<code>" ends the current command.
EXIT_CODE_IDENTIFIER = "exitCodeOfLastCommandInShell="

BASH_EXIT_CODE_CHECK = "echo {marker}$?"
FISH_EXIT_CODE_CHECK = "echo {marker}$status"
TCSH_EXIT_CODE_CHECK = "echo {marker}$?"
ZSH_EXIT_CODE_CHECK = "echo {marker}$?"
CMD_EXIT_CODE_CHECK = "echo {marker}%errorlevel%"
POWERSHELL_EXIT_CODE_CHECK = "echo {marker}$lastexitcode"

# Written to stderr after the probe; once the stderr reader sees it, every
# stderr line of the command has been read. {token} tells commands apart.
STDERR_FENCE_IDENTIFIER = "stderrFenceOfLastCommandInShell="

POSIX_STDERR_FENCE = "echo {marker}{token} 1>&2"
# tcsh has no `1>&2`, so the echo runs in sh.
TCSH_STDERR_FENCE = "sh -c 'echo {marker}{token} 1>&2'"
CMD_STDERR_FENCE = ">&2 echo {marker}{token}"
POWERSHELL_STDERR_FENCE = "[Console]::Error.WriteLine('{marker}{token}')"

# powershell only reads commands from stdin when told to.
POWERSHELL_START_ARGUMENTS = ("-Command", "-")

CLOSING_COMMAND = "exit"

OUTPUT_FIELDS = ("stdout", "stderr", "exitcode")
