# Copyright 2020-2022 Josh Bailey (josh@vandervecken.com)

## Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated documentation files (the "Software"), to deal in the Software without restriction, including without limitation the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software, and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

## The above copyright notice and this permission notice shall be included in all copies or substantial portions of the Software.

## THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE LIABL E FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.

# https://github.com/arnaud-carre/StSound
# https://tinytapeout.com/runs/tt05/tt_um_rejunity_ay8913

import logging
import os
import numpy as np
import pandas as pd
from psymconv.fileio import atomic_write, read_csv

CLOCK_FREQ_HZ = 2000000
SAMPLE_RATE_HZ = 50
MAX_CLOCK_FREQ_HZ = 2**32 - 1
MAX_SAMPLE_RATE_HZ = 2**8 - 1
NUM_REGISTERS = 16
MAX_REGISTERS = 2**8 - 1
MAX_REG_VAL = 2**8 - 1

EXIT_BADARGS = 2
EXIT_NOINPUT = 3
EXIT_BADINPUT = 4


class ChipState:
    """Last value written to each chip register over a whole conversion.

    None means the register has never been written.
    """

    def __init__(self, registers=NUM_REGISTERS):
        if not 0 < registers <= MAX_REGISTERS:
            raise ValueError('register count %u not in 1..%u' % (registers, MAX_REGISTERS))
        self.values = [None] * registers

    def __len__(self):
        return len(self.values)

    def __getitem__(self, reg):
        return self.values[reg]

    def __setitem__(self, reg, val):
        self.values[reg] = val

    def changed(self, reg, val):
        return self.values[reg] != val


def check_snapshot(chip_state, snapshot):
    if len(snapshot) != len(chip_state):
        raise ValueError('snapshot has %u registers, expected %u' % (len(snapshot), len(chip_state)))
    for reg, val in enumerate(snapshot):
        if val is not None and not 0 <= val <= MAX_REG_VAL:
            raise ValueError('register %u value %s not in 0..%u' % (reg, val, MAX_REG_VAL))


def delta_writes(chip_state, snapshot, dedup=True):
    """Return the (reg, val) writes needed to bring chip_state to snapshot.

    Only registers set (not None) in snapshot are considered. With dedup,
    a register is written only if its value changed, except that a frame
    with no changes at all still writes its lowest set register so that
    repeated frames are not dropped. chip_state is updated in place.
    """
    check_snapshot(chip_state, snapshot)
    set_regs = [(reg, val) for reg, val in enumerate(snapshot) if val is not None]
    changed = len([reg for reg, val in set_regs if chip_state.changed(reg, val)])
    writes = []
    for reg, val in set_regs:
        if not dedup or chip_state.changed(reg, val) or (not changed and not writes):
            chip_state[reg] = val
            writes.append((reg, val))
    return tuple(writes)


def snapshots2samples(snapshots, registers=NUM_REGISTERS, dedup=True):
    chip_state = ChipState(registers)
    samples = []
    frames = 0
    for snapshot in snapshots:
        frames += 1
        writes = delta_writes(chip_state, snapshot, dedup=dedup)
        if writes:
            samples.append(writes)
    logging.debug('%u samples from %u frames (dedup %s)', len(samples), frames, dedup)
    return samples


def samples2df(samples):
    rows = [
        {'sample': i, 'reg': reg, 'val': val}
        for i, sample in enumerate(samples) for reg, val in sample]
    df = pd.DataFrame(rows, columns=['sample', 'reg', 'val'])
    return df.astype({'sample': np.uint64, 'reg': np.uint8, 'val': np.uint8})


def write_samples_log(log_name, samples):
    logging.debug('writing %s', log_name)
    atomic_write(log_name, samples2df(samples).to_csv(index=False).encode('utf8'))


# Read a register write log, one "frame reg val" write per line.
def reg2snapshots(log_name, registers=NUM_REGISTERS):
    logging.debug('reading %s', log_name)
    if not os.path.getsize(log_name):
        return
    df = read_csv(
        log_name,
        sep=' ',
        names=['frame', 'reg', 'val'],
        dtype={'frame': np.int64, 'reg': np.int64, 'val': np.int64})
    logging.debug('read %u rows from %s', len(df), log_name)
    bad_regs = df[(df['reg'] < 0) | (df['reg'] >= registers)]
    if not bad_regs.empty:
        raise ValueError('%s: register %d not in 0..%u' % (log_name, bad_regs['reg'].iat[0], registers - 1))
    bad_vals = df[(df['val'] < 0) | (df['val'] > MAX_REG_VAL)]
    if not bad_vals.empty:
        raise ValueError('%s: value %d not in 0..%u' % (log_name, bad_vals['val'].iat[0], MAX_REG_VAL))
    df = df.astype({'val': np.uint8})
    # last write to a register in a frame wins.
    df = df.drop_duplicates(subset=['frame', 'reg'], keep='last')
    reg_df = df.pivot(index='frame', columns='reg', values='val').reindex(
        columns=range(registers)).sort_index()
    logging.debug('%u frames from %s', len(reg_df), log_name)
    for row in reg_df.itertuples(index=False):
        yield tuple(None if pd.isna(val) else int(val) for val in row)


def psym_args(parser):
    parser.add_argument('-p', '--python', dest='python', action='store_true', help='write a Python listing instead of PSYM')
    parser.add_argument('--clock', default=None, type=int, help='chip clock in Hz (default from input, else %u)' % CLOCK_FREQ_HZ)
    parser.add_argument('--rate', default=None, type=int, help='sample rate in Hz (default from input, else %u)' % SAMPLE_RATE_HZ)
    dedup_parser = parser.add_mutually_exclusive_group(required=False)
    dedup_parser.add_argument('--dedup', dest='dedup', action='store_true', help='only write registers that change')
    dedup_parser.add_argument('--no-dedup', dest='dedup', action='store_false', help='write every set register every frame')
    parser.add_argument('--logfile', default='', help='if defined, also write emitted register writes to this CSV file')
    parser.set_defaults(python=False, dedup=True)


def valid_clock(clock):
    return 0 < clock <= MAX_CLOCK_FREQ_HZ


def valid_rate(rate):
    return 0 < rate <= MAX_SAMPLE_RATE_HZ


def check_psym_args(parser, args):
    if args.clock is not None and not valid_clock(args.clock):
        parser.error('--clock must be in 1..%u' % MAX_CLOCK_FREQ_HZ)
    if args.rate is not None and not valid_rate(args.rate):
        parser.error('--rate must be in 1..%u' % MAX_SAMPLE_RATE_HZ)


def psym_timing(args, info=None):
    if info is None:
        info = {}
    clock = args.clock
    if clock is None:
        clock = info.get('clock') or CLOCK_FREQ_HZ
    rate = args.rate
    if rate is None:
        rate = info.get('rate') or SAMPLE_RATE_HZ
    return (clock, rate)
