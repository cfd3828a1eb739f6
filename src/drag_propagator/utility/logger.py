"""
Logger Utility
==============

Copies everything the propagator prints (stdout and stderr) to a log file
while it still reaches the terminal.
"""
import sys

from pathlib import Path
from typing  import Optional, TextIO


class TeeStream:
  """
  Text stream duplicating writes to the terminal and a log file.

  Attributes other than write/flush (encoding, isatty, ...) are those of
  the terminal stream.
  """

  def __init__(
    self,
    terminal : TextIO,
    log_file : TextIO,
  ):
    self.terminal = terminal
    self.log_file = log_file

  def write(
    self,
    message : str,
  ) -> int:
    self.log_file.write(message)
    return self.terminal.write(message)

  def flush(self) -> None:
    self.terminal.flush()
    self.log_file.flush()

  def __getattr__(self, name):
    return getattr(self.terminal, name)


class LoggerContext:
  """
  Streams replaced by start_logging, restored by stop_logging.
  """

  def __init__(
    self,
    log_file        : TextIO,
    original_stdout : TextIO,
    original_stderr : TextIO,
  ):
    self.log_file        = log_file
    self.original_stdout = original_stdout
    self.original_stderr = original_stderr


def start_logging(
  log_filepath : Optional[Path],
) -> Optional[LoggerContext]:
  """
  Start copying terminal output to a file.

  Input:
  ------
    log_filepath : Path | None
      Log file, overwritten if it exists. None disables logging.

  Output:
  -------
    context : LoggerContext | None
      Handle for stop_logging, or None if logging is disabled.
  """
  if log_filepath is None:
    return None

  log_file = open(log_filepath, 'w', encoding='utf-8')
  context  = LoggerContext(log_file, sys.stdout, sys.stderr)

  # Both streams share one file so messages keep their order
  sys.stdout = TeeStream(context.original_stdout, log_file)
  sys.stderr = TeeStream(context.original_stderr, log_file)

  return context


def stop_logging(
  context : Optional[LoggerContext],
) -> None:
  """
  Restore the terminal streams and close the log file. No-op for None.
  """
  if context is None:
    return

  sys.stdout.flush()
  sys.stderr.flush()

  sys.stdout = context.original_stdout
  sys.stderr = context.original_stderr
  context.log_file.close()
