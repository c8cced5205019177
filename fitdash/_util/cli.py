#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
parse is installed as an executable console_script with this package.

"""
from argparse import ArgumentParser
import json
import logging
import sys

from fitdash import fit, tools
from fitdash._util.exceptions import FitDashError, describe_failure


LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


class FileFailure(Exception):
    """A file couldn't be read. The message is fit for the user."""


def load(file_path, options):
    try:
        return fit.parse_file(file_path, **options)
    except (FitDashError, OSError) as e:
        raise FileFailure(describe_failure(file_path, e)) from e


def show_summary(args, options):
    parsed = load(args.input, options)
    lines = ['%s: %s' % item for item in parsed.summary().items()]
    if parsed.device_info is not None:
        lines.append('device: %s' % parsed.device_info.to_dict())
    return '\n'.join(lines)


def show_csv(args, options):
    parsed = load(args.input, options)
    data = fit.to_activity_data(parsed, tz_str=args.tz)
    return data.to_csv(na_rep='NA', index_label='time')


def show_raw(args, options):
    parsed = load(args.input, options)
    return json.dumps(parsed.raw, indent=2, default=str)


def show_inspection(args, options):
    try:
        with open(args.input, 'rb') as fitfile:
            data = fitfile.read()
    except OSError as e:
        raise FileFailure(describe_failure(args.input, e)) from e

    inspection = fit.inspect(data)
    lines = []
    if inspection.header is None:
        lines.append('no header (%d bytes)' % inspection.size)
    else:
        lines.extend('%s: %s' % item
                     for item in inspection.header._asdict().items())
        lines.append('signature ok: %s' % inspection.signature_ok)
        lines.append('crc ok: %s' % inspection.crc_ok)
    lines.append('')
    lines.extend('%08X  %-20s  %2d  %4d  %s' % message
                 for message in inspection.messages)
    lines.append('')
    lines.append(fit.hex_dump(data))
    return '\n'.join(lines)


def show_comparison(args, options):
    first, second = (load(path, options) for path in (args.input, args.other))
    comparison = tools.compare(first, second)
    lines = []
    for key, path in (('first', args.input), ('second', args.other)):
        stats = comparison[key]
        lines.append('%s: %s W, %s rpm, %.1f min' % (
            path, stats['avg_power'], stats['avg_cadence'],
            stats['duration_min']))
    lines.append('power difference: %s%%'
                 % comparison['power_difference_pct'])
    return '\n'.join(lines)


MODES = {
    'summary': show_summary,
    'csv': show_csv,
    'raw': show_raw,
    'inspect': show_inspection,
    'compare': show_comparison,
}


def parse(argv=None):

    # Argument handling
    parser = ArgumentParser(description='decode a FIT activity file')

    parser.add_argument('input',
                        type=str,
                        help='FIT file to read')
    parser.add_argument('other',
                        type=str,
                        nargs='?',
                        default=None,
                        help='second FIT file; only for --mode compare')
    parser.add_argument('--mode',
                        type=str,
                        default='summary',
                        choices=tuple(MODES),
                        help='what to print (default: summary)')
    parser.add_argument('--output',
                        type=str,
                        metavar='filename',
                        default=None,
                        help='optional; file to write to')
    parser.add_argument('--strict',
                        action='store_true',
                        help='fail on the first unusable message')
    parser.add_argument('--check-crc',
                        action='store_true',
                        help='verify file CRCs before decoding')
    parser.add_argument('--tz',
                        type=str,
                        default=None,
                        help='optional; timezone for --mode csv')
    parser.add_argument('--log-level',
                        type=str,
                        default='WARNING',
                        choices=LOG_LEVELS)

    args = parser.parse_args(argv)
    if args.mode == 'compare' and args.other is None:
        parser.error('--mode compare needs two files')

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format=LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    # Script begins
    options = {'strict': args.strict, 'check_crc': args.check_crc}
    try:
        text = MODES[args.mode](args, options)
    except FileFailure as e:
        print(e, file=sys.stderr)
        return 1

    if args.output is None:
        print(text)
    else:
        with open(args.output, 'w', encoding='utf-8') as out:
            out.write(text)

    return 0


if __name__ == '__main__':
    sys.exit(parse())
