"""The Command Line Interface for jsrsa.

Wraps a `JSEncrypt` instance per invocation: keys are read from and written to PEM files, payloads are given inline
or, prefixed with ``P:``, as a path to a file.

Typical usage example:

    jsrsa keygen -P key.pem -p key.pub
    jsrsa encrypt -p key.pub --message "Hi there!"
    python -m jsrsa verify -p key.pub --message P:note.txt -S <signature>
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import pathlib
import sys

import jsrsa

logger = logging.getLogger("jsrsa.cli")

pubkey = argparse.ArgumentParser(add_help=False)
pubkey.add_argument("--public_key", "-p", type=pathlib.Path, required=True, help="Location of the public key file.")
privkey = argparse.ArgumentParser(add_help=False)
privkey.add_argument("--private_key", "-P", type=pathlib.Path, required=True, help="Location of the private key file.")
payloads = argparse.ArgumentParser(add_help=False)
payloads.add_argument("--message",
                      "-m",
                      required=True,
                      help="Message or path to file containing payload. If Path start with `P:`")
corep = argparse.ArgumentParser(prog="jsrsa")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {jsrsa.__version__}")
corep.add_argument("--verbose", "-V", action="store_true", help="Log debug records to stderr")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands", required=True)

keygen = commands.add_parser("keygen", parents=[privkey, pubkey], help="Key generation utility.")
keygen.add_argument("--keysize",
                    type=int,
                    choices=[512, 1024, 2048, 4096],
                    default=jsrsa.jsencrypt.DEFAULT_KEY_SIZE,
                    help="Key size (in bits).")
keygen.add_argument("--overwrite", "-o", action="store_true", help="Overwrite destination files if they exist.")
commands.add_parser("encrypt", parents=[pubkey, payloads], help="Encryption utility.")
commands.add_parser("decrypt", parents=[privkey, payloads], help="Decryption utility.")
commands.add_parser("sign", parents=[privkey, payloads], help="Signing utility.")
verify = commands.add_parser("verify", parents=[pubkey, payloads], help="Signature verification utility.")
verify.add_argument("--signature", "-S", required=True, help="The base64 signature to check against the payload.")


def check_message(mess: str) -> str:
    """Parse message for path-notice."""
    if mess.startswith("P:"):
        with open(mess[2:], "r", encoding="utf-8") as f:
            mess = f.read()
    return mess


def load_key(file: pathlib.Path) -> jsrsa.JSEncrypt:
    js = jsrsa.JSEncrypt()
    js.set_key(file.read_text(encoding="ascii"))
    return js


def run(args: argparse.Namespace) -> int:
    """Executes the parsed subcommand and returns the exit status."""
    match args.subcommand:
        case "keygen":
            if not args.overwrite and (args.private_key.exists() or args.public_key.exists()):
                print("Destination private or public key already exists!", file=sys.stderr)
                return 1
            js = jsrsa.JSEncrypt(default_key_size=args.keysize)
            args.private_key.write_text(js.get_private_key(), encoding="ascii")
            args.public_key.write_text(js.get_public_key(), encoding="ascii")
            print("Key pair generated!")
        case "encrypt":
            print(load_key(args.public_key).encrypt(check_message(args.message)))
        case "decrypt":
            clear = load_key(args.private_key).decrypt(check_message(args.message).strip())
            try:
                print(clear.decode("utf-8"))
            except UnicodeDecodeError:
                print("Error: Decrypted message is not UTF-8 text.", file=sys.stderr)
                return 2
        case "sign":
            print(load_key(args.private_key).sign(check_message(args.message)))
        case "verify":
            if not load_key(args.public_key).verify(check_message(args.message), args.signature):
                print("Signature Verification Failed!")
                return 1
            print("Signature Verified!")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Command line entry point."""
    args = corep.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        return run(args)
    except jsrsa.JSRSAError as exc:
        logger.debug("Command %s failed", args.subcommand, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
