#!/usr/bin/python3

# Copyright 2020-2022 Josh Bailey (josh@vandervecken.com)

## Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated documentation files (the "Software"), to deal in the Software without restriction, including without limitation the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software, and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

## The above copyright notice and this permission notice shall be included in all copies or substantial portions of the Software.

# http://antarctica.no/stuff/atari/YM2/Misc.Games/

import argparse
import logging
import sys
from psymconv.psymfile import convert_snapshots
from psymconv.psymlib import check_psym_args, psym_args, EXIT_BADINPUT, EXIT_NOINPUT
from psymconv.yminfo import read_ym, ym_snapshots


def log_song_info(info):
    duration = round(info['duration'])
    logging.info('Name: %s', info['name'])
    logging.info('Author: %s', info['author'])
    logging.info('Comment: %s', info['comment'])
    logging.info('Duration: %u:%02u', duration // 60, duration % 60)
    logging.info('Format: %s, %u frames, clock %u Hz, rate %u Hz', info['magicID'], info['frames'], info['clock'], info['rate'])


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(message)s')

    parser = argparse.ArgumentParser(description='Convert a YM file into PSYM register settings')
    parser.add_argument('ymfile', help='YM file to read')
    parser.add_argument('outfile', help='PSYM (or Python, with -p) file to write')
    psym_args(parser)
    args = parser.parse_args(argv)
    check_psym_args(parser, args)

    try:
        info, frames = read_ym(args.ymfile)
    except FileNotFoundError:
        logging.error("can't find %s", args.ymfile)
        sys.exit(EXIT_NOINPUT)
    except ValueError as err:
        logging.error('cannot read %s: %s', args.ymfile, err)
        sys.exit(EXIT_BADINPUT)
    log_song_info(info)

    try:
        samples = convert_snapshots(args, ym_snapshots(frames), info)
    except ValueError as err:
        logging.error('cannot convert %s: %s', args.ymfile, err)
        sys.exit(EXIT_BADINPUT)
    print('collected %u samples, written to %s' % (samples, args.outfile))


if __name__ == '__main__':
    main()
