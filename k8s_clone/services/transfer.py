# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Stream the contents of a volume from one worker pod into another.

The default copier runs two `kubectl exec` processes, one per cluster
context, and connects the sender's tar stream to the receiver's stdin.
Anything implementing `StreamCopier` can replace it.
"""

import logging
import subprocess
import tempfile
from typing import IO, List, Protocol

from k8s_clone.models.resources import PodRef

logger = logging.getLogger(__name__)


class StreamCopier(Protocol):
    def stream_copy(self, source: PodRef, destination: PodRef) -> int:
        """Copy the mount path of `source` into `destination`; return an exit code."""
        ...


class KubectlStreamCopier:
    """tar | tar pipeline between two pods through `kubectl exec`."""

    def __init__(self, kubectl_binary: str = "kubectl", mount_path: str = "/data"):
        self.kubectl_binary = kubectl_binary
        self.mount_path = mount_path

    def _exec_command(self, pod: PodRef, command: List[str], stdin: bool = False) -> List[str]:
        cmd = [self.kubectl_binary]
        if pod.context:
            cmd += ["--context", pod.context]
        cmd.append("exec")
        if stdin:
            cmd.append("-i")
        cmd += [pod.name, "-n", pod.namespace, "-c", pod.container, "--"]
        return cmd + command

    def sender_command(self, pod: PodRef) -> List[str]:
        return self._exec_command(pod, ["tar", "cf", "-", "-C", self.mount_path, "."])

    def receiver_command(self, pod: PodRef) -> List[str]:
        return self._exec_command(
            pod, ["tar", "xf", "-", "-C", self.mount_path], stdin=True
        )

    def stream_copy(self, source: PodRef, destination: PodRef) -> int:
        """Run the pipeline and wait for both ends.

        Returns the receiver's exit code when it failed, otherwise the
        sender's, so a failure on either side is reported.
        """
        send_cmd = self.sender_command(source)
        recv_cmd = self.receiver_command(destination)
        logger.debug(f"Transfer pipeline: {' '.join(send_cmd)} | {' '.join(recv_cmd)}")

        with tempfile.TemporaryFile() as send_err, tempfile.TemporaryFile() as recv_err:
            sender = subprocess.Popen(send_cmd, stdout=subprocess.PIPE, stderr=send_err)
            try:
                receiver = subprocess.Popen(recv_cmd, stdin=sender.stdout, stderr=recv_err)
            except OSError:
                sender.kill()
                sender.wait()
                raise
            finally:
                # Only the receiver reads the stream; the sender sees EPIPE if it exits
                sender.stdout.close()

            receiver_code = receiver.wait()
            sender_code = sender.wait()

            if receiver_code or sender_code:
                _log_stderr("sender", send_err)
                _log_stderr("receiver", recv_err)

        return receiver_code or sender_code


def _log_stderr(side: str, stream: IO[bytes]) -> None:
    stream.seek(0)
    output = stream.read().decode("utf-8", errors="replace").strip()
    if output:
        logger.debug(f"Transfer {side} stderr: {output}")
