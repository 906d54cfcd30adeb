#!/usr/bin/python3

import argparse
import os
import tempfile
import unittest
from psymconv.psymfile import read_psym
from psymconv.psymlib import (
    ChipState, delta_writes, snapshots2samples, samples2df, reg2snapshots,
    psym_args, psym_timing, NUM_REGISTERS, CLOCK_FREQ_HZ, SAMPLE_RATE_HZ)
from psymconv import reg2psym


def snapshot(**regs):
    values = [None] * NUM_REGISTERS
    for reg, val in regs.items():
        values[int(reg[1:])] = val
    return tuple(values)


class PsymLibTestCase(unittest.TestCase):
    """Test register delta tracking."""

    def test_first_touch_repeat_change(self):
        first = tuple(range(NUM_REGISTERS))
        third = list(first)
        third[4] = 99
        samples = snapshots2samples([first, first, tuple(third)])
        self.assertEqual([
            tuple((reg, reg) for reg in range(NUM_REGISTERS)),
            ((0, 0),),
            ((4, 99),)], samples)

    def test_repeats_emit_one_write_each(self):
        frame = snapshot(r2=7, r5=9, r13=1)
        samples = snapshots2samples([frame] * 6)
        self.assertEqual(((2, 7), (5, 9), (13, 1)), samples[0])
        self.assertEqual([((2, 7),)] * 5, samples[1:])

    def test_changed_frame_has_no_extra_write(self):
        samples = snapshots2samples([
            snapshot(r0=1, r1=2),
            snapshot(r0=1, r1=3)])
        self.assertEqual([((0, 1), (1, 2)), ((1, 3),)], samples)

    def test_no_dedup(self):
        frames = [
            snapshot(r0=1, r1=2),
            snapshot(r0=1, r1=2),
            snapshot(r1=3, r9=4)]
        samples = snapshots2samples(frames, dedup=False)
        self.assertEqual([
            ((0, 1), (1, 2)),
            ((0, 1), (1, 2)),
            ((1, 3), (9, 4))], samples)

    def test_unset_registers_invisible(self):
        chip_state = ChipState()
        self.assertEqual(((3, 5), (4, 6)), delta_writes(chip_state, snapshot(r3=5, r4=6)))
        # r3 is unchanged and r4 is not set, so only the repeat write happens.
        self.assertEqual(((3, 5),), delta_writes(chip_state, snapshot(r3=5)))
        self.assertEqual((), delta_writes(chip_state, snapshot()))
        self.assertEqual(5, chip_state[3])
        self.assertEqual(6, chip_state[4])
        self.assertEqual(None, chip_state[0])

    def test_empty_frames_dropped(self):
        samples = snapshots2samples([snapshot(), snapshot(r1=1), snapshot()])
        self.assertEqual([((1, 1),)], samples)
        self.assertEqual([], snapshots2samples([]))

    def test_replay_deterministic(self):
        frames = [
            snapshot(r0=i % 3, r7=255 - (i % 2), r13=(i // 4) % 16) for i in range(40)]
        self.assertEqual(snapshots2samples(frames), snapshots2samples(frames))

    def test_counts(self):
        frames = [tuple(range(NUM_REGISTERS)), snapshot(r1=1), tuple([0] * NUM_REGISTERS)]
        for sample in snapshots2samples(frames):
            self.assertTrue(0 < len(sample) <= NUM_REGISTERS)
            regs = [reg for reg, _ in sample]
            self.assertEqual(sorted(regs), regs)

    def test_bad_snapshot(self):
        chip_state = ChipState()
        with self.assertRaises(ValueError):
            delta_writes(chip_state, (1, 2, 3))
        with self.assertRaises(ValueError):
            delta_writes(chip_state, snapshot(r2=256))
        with self.assertRaises(ValueError):
            ChipState(0)
        with self.assertRaises(ValueError):
            ChipState(256)

    def test_samples2df(self):
        df = samples2df([((0, 1), (1, 2)), ((4, 99),)])
        self.assertEqual(['sample', 'reg', 'val'], list(df.columns))
        self.assertEqual([0, 0, 1], list(df['sample']))
        self.assertEqual([0, 1, 4], list(df['reg']))
        self.assertEqual([1, 2, 99], list(df['val']))
        self.assertTrue(samples2df([]).empty)

    def test_psym_timing(self):
        parser = argparse.ArgumentParser()
        psym_args(parser)
        args = parser.parse_args([])
        self.assertTrue(args.dedup)
        self.assertEqual((CLOCK_FREQ_HZ, SAMPLE_RATE_HZ), psym_timing(args))
        self.assertEqual((1773400, 60), psym_timing(args, {'clock': 1773400, 'rate': 60}))
        args = parser.parse_args(['--clock', '1000000', '--rate', '25', '--no-dedup'])
        self.assertFalse(args.dedup)
        self.assertEqual((1000000, 25), psym_timing(args, {'clock': 1773400, 'rate': 60}))

    def test_reg2snapshots(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            test_log = os.path.join(tmpdir, 'test.log')
            with open(test_log, 'w', encoding='utf8') as log:
                log.write('\n'.join((
                    '0 0 1',
                    '0 7 255',
                    '0 7 254',
                    '2 4 99',
                    '')))
            snapshots = list(reg2snapshots(test_log))
            self.assertEqual([snapshot(r0=1, r7=254), snapshot(r4=99)], snapshots)

    def test_reg2snapshots_bad_reg(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            test_log = os.path.join(tmpdir, 'test.log')
            with open(test_log, 'w', encoding='utf8') as log:
                log.write('0 16 1\n')
            with self.assertRaises(ValueError):
                list(reg2snapshots(test_log))

    def test_reg2snapshots_out_of_range(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            test_log = os.path.join(tmpdir, 'test.log')
            for line in ('0 0 256', '0 0 300', '0 256 1', '0 -1 1', '0 0 -1'):
                with open(test_log, 'w', encoding='utf8') as log:
                    log.write(line + '\n')
                with self.assertRaises(ValueError):
                    list(reg2snapshots(test_log))

    def test_reg2psym_bad_value(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            test_log = os.path.join(tmpdir, 'test.log')
            test_psym = os.path.join(tmpdir, 'test.psym')
            with open(test_log, 'w', encoding='utf8') as log:
                log.write('0 0 300\n')
            with self.assertRaises(SystemExit) as cm:
                reg2psym.main([test_log, test_psym])
            self.assertEqual(4, cm.exception.code)
            self.assertFalse(os.path.exists(test_psym))

    def test_reg2psym_unwritable_logfile(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            test_log = os.path.join(tmpdir, 'test.log')
            test_psym = os.path.join(tmpdir, 'test.psym')
            with open(test_log, 'w', encoding='utf8') as log:
                log.write('0 0 1\n')
            with self.assertRaises(OSError):
                reg2psym.main([test_log, test_psym, '--logfile', os.path.join(tmpdir, 'missing', 'test.csv')])
            self.assertEqual(['test.log'], os.listdir(tmpdir))

    def test_reg2psym(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            test_log = os.path.join(tmpdir, 'test.log')
            test_psym = os.path.join(tmpdir, 'test.psym')
            test_csv = os.path.join(tmpdir, 'test.csv')
            with open(test_log, 'w', encoding='utf8') as log:
                log.write('\n'.join((
                    '0 0 1',
                    '0 1 2',
                    '1 0 1',
                    '1 1 2',
                    '2 1 3',
                    '')))
            reg2psym.main([test_log, test_psym, '--rate', '60', '--logfile', test_csv])
            header, samples = read_psym(test_psym)
            self.assertEqual(60, header['rate'])
            self.assertEqual(CLOCK_FREQ_HZ, header['clock'])
            self.assertEqual([((0, 1), (1, 2)), ((0, 1),), ((1, 3),)], samples)
            with open(test_csv, encoding='utf8') as f:
                self.assertEqual('sample,reg,val', f.readline().strip())

    def test_reg2psym_missing_input(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            test_psym = os.path.join(tmpdir, 'test.psym')
            with self.assertRaises(SystemExit) as cm:
                reg2psym.main([os.path.join(tmpdir, 'missing.log'), test_psym])
            self.assertEqual(3, cm.exception.code)
            self.assertFalse(os.path.exists(test_psym))


if __name__ == '__main__':
    unittest.main()
