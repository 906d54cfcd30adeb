#!/usr/bin/python3

# Copyright 2020-2022 Josh Bailey (josh@vandervecken.com)

## Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated documentation files (the "Software"), to deal in the Software without restriction, including without limitation the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software, and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

## The above copyright notice and this permission notice shall be included in all copies or substantial portions of the Software.

import argparse
import logging
import sys
from psymconv.fileio import py_path
from psymconv.psymfile import read_psym, write_samples
from psymconv.psymlib import EXIT_BADINPUT, EXIT_NOINPUT


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(message)s')

    parser = argparse.ArgumentParser(description='Convert a PSYM file into a Python listing')
    parser.add_argument('psymfile', help='PSYM file to read')
    parser.add_argument('--pyfile', default='', help='Python file to write')
    args = parser.parse_args(argv)
    pyfile = args.pyfile
    if not pyfile:
        pyfile = py_path(args.psymfile)

    try:
        header, samples = read_psym(args.psymfile)
    except FileNotFoundError:
        logging.error("can't find %s", args.psymfile)
        sys.exit(EXIT_NOINPUT)
    except ValueError as err:
        logging.error('cannot read %s: %s', args.psymfile, err)
        sys.exit(EXIT_BADINPUT)

    write_samples(pyfile, samples, header['clock'], header['rate'], python=True)
    print('%u samples, written to %s' % (len(samples), pyfile))


if __name__ == '__main__':
    main()
