#!/usr/bin/python3

import argparse
from psymconv.yminfo import yminfo


def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument('ymfile', nargs='+')
    args = parser.parse_args(argv)

    for f in args.ymfile:
        print(yminfo(f))


if __name__ == '__main__':
    main()
