"""CLI entry point for servicekit: inspect and edit a YAML configuration store."""

import argparse
import json
import logging
import sys

from .configuration import ConfigurationService, NamespaceConfigurationDecorator
from .errors import ServiceKitError
from .settings import ServiceKitSettings, create_configuration_service, load_settings, merge_cli_args


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add settings flags shared by all subcommands."""
    parser.add_argument("--config", type=str, help="Path to YAML settings file")
    parser.add_argument(
        "--store", type=str, dest="store_path",
        help="Path to the YAML configuration store (default: servicekit_store.yaml)",
    )
    parser.add_argument(
        "--fallback-to-environ", action="store_true", dest="fallback_to_environ",
        default=None,
        help="Read keys missing from the store and defaults from the environment",
    )
    parser.add_argument(
        "--namespace", type=str, default=None,
        help="Prefix keys with this namespace (reads fall back to the plain key)",
    )
    parser.add_argument("--delimiter", type=str, help="Namespace delimiter (default: /)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def _build_settings(args) -> ServiceKitSettings:
    """Build settings from a settings file + CLI overrides."""
    if args.config:
        settings = load_settings(args.config)
    else:
        settings = ServiceKitSettings()
    merge_cli_args(settings, args)
    return settings


def _open_service(args) -> ConfigurationService:
    settings = _build_settings(args)
    service: ConfigurationService = create_configuration_service(settings)
    if args.namespace:
        service = NamespaceConfigurationDecorator(service, args.namespace, settings.delimiter)
    return service


def cmd_get(args) -> None:
    service = _open_service(args)
    if args.type == "int":
        value = service.get_int(args.key)
    elif args.type == "bool":
        value = service.get_boolean(args.key)
    else:
        value = service.get(args.key)

    if value is None:
        if args.default is None:
            print(f"Key '{args.key}' not found.", file=sys.stderr)
            sys.exit(1)
        value = args.default
    if isinstance(value, bool):
        value = "true" if value else "false"
    print(value)


def cmd_set(args) -> None:
    _open_service(args).set(args.key, args.value)


def cmd_unset(args) -> None:
    _open_service(args).set(args.key, None)


def cmd_get_list(args) -> None:
    values = _open_service(args).get_list(args.key)
    if values is None:
        print(f"List '{args.key}' not found.", file=sys.stderr)
        sys.exit(1)
    if args.format == "json":
        print(json.dumps(values, indent=2))
    else:
        for value in values:
            print(value)


def cmd_set_list(args) -> None:
    _open_service(args).set_list(args.key, args.values)


def cmd_unset_list(args) -> None:
    _open_service(args).set_list(args.key, None)


def cmd_dump(args) -> None:
    settings = _build_settings(args)
    service = create_configuration_service(settings)
    data = {key: service.get_raw(key) for key in service.keys()}
    if args.format == "json":
        print(json.dumps(data, indent=2))
    elif data:
        for key, value in data.items():
            print(f"{key} = {value}")
    else:
        print("(empty store)")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="servicekit",
        description="servicekit: inspect and edit a configuration store",
    )
    subparsers = parser.add_subparsers(dest="command")

    # get
    get_parser = subparsers.add_parser("get", help="Print the value of a key")
    _add_common_args(get_parser)
    get_parser.add_argument("key", type=str, help="Configuration key")
    get_parser.add_argument(
        "--type", choices=["str", "int", "bool"], default="str",
        help="Interpret the value as this type (default: str)",
    )
    get_parser.add_argument("--default", type=str, default=None, help="Value printed if the key is missing")
    get_parser.set_defaults(func=cmd_get)

    # set
    set_parser = subparsers.add_parser("set", help="Store a value")
    _add_common_args(set_parser)
    set_parser.add_argument("key", type=str, help="Configuration key")
    set_parser.add_argument("value", type=str, help="Value to store")
    set_parser.set_defaults(func=cmd_set)

    # unset
    unset_parser = subparsers.add_parser("unset", help="Remove a key")
    _add_common_args(unset_parser)
    unset_parser.add_argument("key", type=str, help="Configuration key")
    unset_parser.set_defaults(func=cmd_unset)

    # get-list
    get_list_parser = subparsers.add_parser("get-list", help="Print a stored list, one value per line")
    _add_common_args(get_list_parser)
    get_list_parser.add_argument("key", type=str, help="List key")
    get_list_parser.add_argument(
        "--format", choices=["text", "json"], default="text",
        help="Output format (default: text)",
    )
    get_list_parser.set_defaults(func=cmd_get_list)

    # set-list
    set_list_parser = subparsers.add_parser("set-list", help="Store a list, replacing any previous one")
    _add_common_args(set_list_parser)
    set_list_parser.add_argument("key", type=str, help="List key")
    set_list_parser.add_argument("values", nargs="*", help="List values")
    set_list_parser.set_defaults(func=cmd_set_list)

    # unset-list
    unset_list_parser = subparsers.add_parser("unset-list", help="Remove a stored list")
    _add_common_args(unset_list_parser)
    unset_list_parser.add_argument("key", type=str, help="List key")
    unset_list_parser.set_defaults(func=cmd_unset_list)

    # dump
    dump_parser = subparsers.add_parser("dump", help="Print every key in the store")
    _add_common_args(dump_parser)
    dump_parser.add_argument(
        "--format", choices=["text", "json"], default="text",
        help="Output format (default: text)",
    )
    dump_parser.set_defaults(func=cmd_dump)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        args.func(args)
    except (ServiceKitError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
