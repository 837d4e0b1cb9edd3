"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details

Configuration settings for the tinyp256 command line.
"""

import argparse
import logging
import os
import sys

from appdirs import AppDirs

from tinyp256.util import helpers


# Set the data directory in a OS-appropriate location.
_ad = AppDirs("tinyp256", False)
DATA_DIR = _ad.user_data_dir

# The master configuration file name.
CONFIG_NAME = "tinyp256.conf"
CONFIG_PATH = os.path.join(DATA_DIR, CONFIG_NAME)

# Keys recognized in the configuration file.
CONFIG_KEYS = ("loglevel", "logfile")

logLevelMap = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "notset": logging.NOTSET,
    "0": logging.NOTSET,
}


def logLvl(s):
    """
    Get the log level from the map.

    Args:
        s (str): A string which is a key for the logLevelMap. Case-insensitive.
    """
    return logLevelMap[s.lower()]


def fileDefaults(path=CONFIG_PATH):
    """
    Read defaults from the configuration file, if there is one.

    Args:
        path (str): The path to the INI file.

    Returns:
        dict: The settings found. Empty if the file does not exist.
    """
    if not os.path.isfile(path):
        return {}
    return helpers.readINI(path, CONFIG_KEYS)


class CmdArgs:
    """
    CmdArgs are command-line configuration options.
    """

    def __init__(self, argv=None, configPath=CONFIG_PATH):
        """
        Args:
            argv (list(str)): optional. The arguments to parse. Defaults to
                sys.argv[1:].
            configPath (str): optional. The INI file supplying defaults for
                --loglevel and --logfile.
        """
        self.logLevel = logging.INFO
        self.moduleLevels = {}
        defaults = fileDefaults(configPath)

        parser = argparse.ArgumentParser(
            prog="tinyp256", description="P-256 signatures and encryption."
        )
        parser.add_argument("--loglevel", default=defaults.get("loglevel"))
        parser.add_argument("--logfile", default=defaults.get("logfile"))
        sub = parser.add_subparsers(dest="command")

        sub.add_parser("keygen", help="generate a key pair")

        cmd = sub.add_parser("pubkey", help="derive the public key")
        cmd.add_argument("privkey", help="hex private key")

        cmd = sub.add_parser("sign", help="sign a message")
        cmd.add_argument("privkey", help="hex private key")
        cmd.add_argument("message")

        cmd = sub.add_parser("verify", help="verify a message signature")
        cmd.add_argument("pubkey", help="base64 public key")
        cmd.add_argument("message")
        cmd.add_argument("signature", help="base64 signature")

        cmd = sub.add_parser("encrypt", help="encrypt and sign a message")
        cmd.add_argument("privkey", help="sender's hex private key")
        cmd.add_argument("pubkey", help="recipient's base64 public key")
        cmd.add_argument("message")

        cmd = sub.add_parser("decrypt", help="verify and decrypt a message")
        cmd.add_argument("pubkey", help="sender's base64 public key")
        cmd.add_argument("privkey", help="recipient's hex private key")
        cmd.add_argument("envelope", help="signed envelope")

        self.parser = parser
        args, unknown = parser.parse_known_args(argv)
        if unknown:
            sys.exit(f"unknown arguments: {unknown}")
        self.args = args
        self.command = args.command
        self.logFile = args.logfile
        if args.loglevel:
            try:
                if any(ch in args.loglevel for ch in (",", ":")):
                    pairs = (s.split(":") for s in args.loglevel.split(","))
                    self.moduleLevels = {k: logLvl(v) for k, v in pairs}
                else:
                    self.logLevel = logLvl(args.loglevel)
            except Exception:
                sys.exit(f"malformed loglevel specifier: {args.loglevel}")


tinyConfig = None


def load():
    """
    Load and return the current command-line configuration. The configuration is
    only loaded once. Successive calls to the modular `load` function will
    return the same instance.

    Returns:
        CmdArgs: The current command-line configuration.
    """
    global tinyConfig
    if not tinyConfig:
        tinyConfig = CmdArgs()
    return tinyConfig
