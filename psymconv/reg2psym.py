#!/usr/bin/python3

# Copyright 2020-2022 Josh Bailey (josh@vandervecken.com)

## Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated documentation files (the "Software"), to deal in the Software without restriction, including without limitation the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software, and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

## The above copyright notice and this permission notice shall be included in all copies or substantial portions of the Software.

import argparse
import logging
import sys
from psymconv.psymfile import convert_snapshots
from psymconv.psymlib import check_psym_args, psym_args, reg2snapshots, EXIT_BADINPUT, EXIT_NOINPUT


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(message)s')

    parser = argparse.ArgumentParser(description='Convert a "frame reg val" register log into PSYM register settings')
    parser.add_argument('regfile', help='register log file to read')
    parser.add_argument('outfile', help='PSYM (or Python, with -p) file to write')
    psym_args(parser)
    args = parser.parse_args(argv)
    check_psym_args(parser, args)

    try:
        snapshots = list(reg2snapshots(args.regfile))
    except FileNotFoundError:
        logging.error("can't find %s", args.regfile)
        sys.exit(EXIT_NOINPUT)
    except ValueError as err:
        logging.error('cannot read %s: %s', args.regfile, err)
        sys.exit(EXIT_BADINPUT)

    samples = convert_snapshots(args, snapshots)
    print('collected %u samples, written to %s' % (samples, args.outfile))


if __name__ == '__main__':
    main()
