"""Command-line option handling shared by the XDP loader programs."""

from __future__ import annotations

import re
import socket
from collections import deque
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

EXIT_FAIL_OPTION = 2
IF_NAMESIZE = 16
SHORT_OPTIONS = "hd:r:L:R:ASNFU:MQ:czpq"

XDP_MODE_UNSPEC = 0
XDP_MODE_NATIVE = 1
XDP_MODE_SKB = 2
XDP_MODE_HW = 3

XDP_SHARED_UMEM = 1 << 0
XDP_COPY = 1 << 1
XDP_ZEROCOPY = 1 << 2

XDP_FLAGS_UPDATE_IF_NOEXIST = 1 << 0
XDP_FLAGS_SKB_MODE = 1 << 1
XDP_FLAGS_DRV_MODE = 1 << 2
XDP_FLAGS_HW_MODE = 1 << 3

_BUFSIZE = 30
_SHORT_TABLE = {ch: bool(colon) for ch, colon in re.findall(r"([^:])(:?)", SHORT_OPTIONS)}


@dataclass(frozen=True)
class OptionSpec:
    """One long option: its name, whether it takes a value, and its code.

    ``val`` is a one-character string for options that also have a short
    form, or a small integer for long-only options.
    """

    name: str
    has_arg: bool
    val: str | int
    help: str = ""
    metavar: str | None = None
    required: bool = False


@dataclass
class Config:
    """Settings gathered from the command line."""

    ifname: str | None = None
    ifindex: int = -1
    redirect_ifname: str | None = None
    redirect_ifindex: int = 0
    attach_mode: int = XDP_MODE_UNSPEC
    xdp_flags: int = XDP_FLAGS_UPDATE_IF_NOEXIST | XDP_FLAGS_DRV_MODE
    xsk_bind_flags: int = 0
    xsk_if_queue: int = 0
    xsk_poll_mode: bool = False
    reuse_maps: bool = False
    do_unload: bool = False
    prog_id: int = 0
    unload_all: bool = False
    filename: str = ""
    progname: str = ""
    src_mac: str = ""
    dest_mac: str = ""
    verbose: bool = True


class OptionError(Exception):
    """Raised when the command line is rejected or help is asked for.

    ``usage`` holds the text to show the user and ``exit_code`` the status
    the program should exit with.
    """

    def __init__(self, message: str, usage: str, help_requested: bool = False) -> None:
        super().__init__(message or "help requested")
        self.message = message
        self.usage = usage
        self.help_requested = help_requested
        self.exit_code = EXIT_FAIL_OPTION


class _Reject(Exception):
    pass


def _option_lines(options: Sequence[OptionSpec], required: bool) -> Iterator[str]:
    for spec in options:
        if spec.required != required:
            continue
        code = ord(spec.val) if isinstance(spec.val, str) else spec.val
        prefix = f" -{chr(code)}," if code > 64 else "    "
        column = f" --{spec.name}"
        if spec.metavar:
            column += f" {spec.metavar}"
        column = column[: _BUFSIZE - 1]
        yield f"{prefix}{column:<22}  {spec.help}\n"


def format_usage(
    prog_name: str, doc: str, options: Sequence[OptionSpec], full: bool
) -> str:
    """Return the usage text, short or with the full option list."""
    head = f"Usage: {prog_name} [options]\n"
    if not full:
        return head + "Use --help (or -h) to see full option list.\n"
    return "".join(
        [
            head,
            f"\nDOCUMENTATION:\n {doc}\n",
            "Required options:\n",
            *_option_lines(options, True),
            "\n",
            "Other options:\n",
            *_option_lines(options, False),
            "\n",
        ]
    )


def _match_long(name: str, options: Sequence[OptionSpec]) -> OptionSpec:
    for spec in options:
        if spec.name == name:
            return spec
    candidates = [spec for spec in options if spec.name.startswith(name)]
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        raise _Reject(f"unrecognized option '--{name}'")
    raise _Reject(f"option '--{name}' is ambiguous")


def _getopt(
    args: Sequence[str], options: Sequence[OptionSpec]
) -> Iterator[tuple[str | int, str | None]]:
    queue = deque(args)
    while queue:
        arg = queue.popleft()
        if arg == "--":
            return
        if arg.startswith("--"):
            name, eq, value = arg[2:].partition("=")
            spec = _match_long(name, options)
            if spec.has_arg:
                if not eq:
                    if not queue:
                        raise _Reject(f"option '--{spec.name}' requires an argument")
                    value = queue.popleft()
                yield spec.val, value
            else:
                if eq:
                    raise _Reject(f"option '--{spec.name}' doesn't allow an argument")
                yield spec.val, None
        elif arg.startswith("-") and arg != "-":
            cluster = arg[1:]
            while cluster:
                ch, cluster = cluster[0], cluster[1:]
                if ch not in _SHORT_TABLE:
                    raise _Reject(f"invalid option -- '{ch}'")
                if not _SHORT_TABLE[ch]:
                    yield ch, None
                    continue
                if cluster:
                    value, cluster = cluster, ""
                elif queue:
                    value = queue.popleft()
                else:
                    raise _Reject(f"option requires an argument -- '{ch}'")
                yield ch, value
        # Anything else is an operand; operands are not used.


def _atoi(text: str | None) -> int:
    match = re.match(r"\s*([+-]?\d+)", text or "")
    return int(match.group(1)) if match else 0


def _resolve_interface(name: str, flag: str) -> tuple[str, int]:
    if len(name.encode()) >= IF_NAMESIZE:
        raise _Reject(f"ERR: {flag} name too long")
    try:
        index = socket.if_nametoindex(name)
    except OSError as exc:
        reason = exc.strerror or str(exc)
        raise _Reject(f"ERR: {flag} name unknown err({exc.errno}):{reason}") from None
    return name, index


def _apply(cfg: Config, opt: str | int, optarg: str | None) -> bool:
    match opt:
        case "d":
            cfg.ifname, cfg.ifindex = _resolve_interface(optarg or "", "--dev")
        case "r":
            cfg.redirect_ifname, cfg.redirect_ifindex = _resolve_interface(
                optarg or "", "--redirect-dev"
            )
        case "A":
            cfg.attach_mode = XDP_MODE_UNSPEC
        case "S":
            cfg.attach_mode = XDP_MODE_SKB
            cfg.xsk_bind_flags = (cfg.xsk_bind_flags & ~XDP_ZEROCOPY) | XDP_COPY
        case "N":
            cfg.attach_mode = XDP_MODE_NATIVE
        case 3:
            cfg.attach_mode = XDP_MODE_HW
        case "M":
            cfg.reuse_maps = True
        case "U":
            cfg.do_unload = True
            cfg.prog_id = _atoi(optarg)
        case "p":
            cfg.xsk_poll_mode = True
        case "q":
            cfg.verbose = False
        case "Q":
            cfg.xsk_if_queue = _atoi(optarg)
        case 1:
            cfg.filename = optarg or ""
        case 2:
            cfg.progname = optarg or ""
        case "L":
            cfg.src_mac = optarg or ""
        case "R":
            cfg.dest_mac = optarg or ""
        case "c":
            cfg.xsk_bind_flags = (cfg.xsk_bind_flags & ~XDP_ZEROCOPY) | XDP_COPY
        case "z":
            cfg.xsk_bind_flags = (cfg.xsk_bind_flags & ~XDP_COPY) | XDP_ZEROCOPY
        case 4:
            cfg.unload_all = True
        case _:
            return False
    return True


def parse_cmdline_args(
    argv: Sequence[str], options: Sequence[OptionSpec], doc: str
) -> Config:
    """Parse ``argv`` (program name first) into a :class:`Config`.

    Raises :class:`OptionError` carrying the usage text on any rejected
    option, and with ``help_requested`` set for ``-h``.
    """
    args = list(argv)
    if not args:
        raise ValueError("argv must hold at least the program name")
    prog_name = args[0]
    cfg = Config()

    def reject(message: str, full: bool = False) -> OptionError:
        return OptionError(message, format_usage(prog_name, doc, options, full), full)

    try:
        for opt, optarg in _getopt(args[1:], options):
            if opt == "h":
                raise reject("", full=True)
            if not _apply(cfg, opt, optarg):
                raise reject(f"unsupported option: {opt}")
    except _Reject as exc:
        raise reject(str(exc)) from None
    return cfg