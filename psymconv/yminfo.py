#!/usr/bin/python3

# http://leonard.oxg.free.fr/ymformat.html
# https://github.com/arnaud-carre/StSound
import io
import logging
import struct
import lhafile
import numpy as np
from psymconv.psymlib import NUM_REGISTERS

YM_CHECK_STRING = b'LeOnArD!'
YM_ATARI_CLOCK = 2000000
YM_ATARI_RATE = 50
YM3_REGISTERS = 14
YM_ENVELOPE_SHAPE_REG = 13
YM_NO_ENVELOPE_SHAPE = 0xff
YM_INTERLEAVED = 2**0
YM_CHIP_REGISTERS = 13
# implemented bits per AY-3-8910 register; YM5/6 keep effect data in the rest.
YM_REGISTER_MASKS = (
    0xff, 0x0f, 0xff, 0x0f, 0xff, 0x0f, 0x1f, 0xff,
    0x1f, 0x1f, 0x1f, 0xff, 0xff, 0x0f, 0xff, 0xff)
LHA_METHODS = {b'-lh0-', b'-lh4-', b'-lh5-', b'-lh6-', b'-lh7-'}


def intdecode(x):
    return int(x)


def strdecode(x):
    return x.decode('latin1').rstrip('\x00')


YM56_HEADERS = (
        # +00    STRING magicID: 'YM5!' or 'YM6!'
        ('magicID', '4s', strdecode),
        # +04    STRING checkString: 'LeOnArD!'
        ('checkString', '8s', strdecode),
        # +0C    LONGWORD frames
        ('frames', 'I', intdecode),
        # +10    LONGWORD attributes
        ('attributes', 'I', intdecode),
        # +14    WORD drums
        ('drums', 'H', intdecode),
        # +16    LONGWORD clock
        ('clock', 'I', intdecode),
        # +1A    WORD rate
        ('rate', 'H', intdecode),
        # +1C    LONGWORD loopFrame
        ('loopFrame', 'I', intdecode),
        # +20    WORD extra header bytes to skip
        ('skip', 'H', intdecode),
)
YM56_HEADER_FORMAT = '>' + ''.join((field_type for _, field_type, _ in YM56_HEADERS))
YM56_HEADER_LEN = struct.calcsize(YM56_HEADER_FORMAT)


def _read_cstr(data, offset):
    end = data.find(b'\x00', offset)
    if end < 0:
        raise ValueError('unterminated string at offset %u' % offset)
    return (strdecode(data[offset:end]), end + 1)


def _ym3(magic, data):
    body = data[4:]
    loop_frame = 0
    if magic == 'YM3b':
        if len(body) < 4:
            raise ValueError('YM3b too short for loop frame')
        loop_frame = struct.unpack('<I', body[-4:])[0]
        body = body[:-4]
    frames = len(body) // YM3_REGISTERS
    info = {
        'magicID': magic,
        'frames': frames,
        'attributes': YM_INTERLEAVED,
        'interleaved': True,
        'drums': 0,
        'clock': YM_ATARI_CLOCK,
        'rate': YM_ATARI_RATE,
        'loopFrame': loop_frame,
        'name': '',
        'author': '',
        'comment': '',
        'registers': YM3_REGISTERS,
    }
    return (info, body[:frames * YM3_REGISTERS])


def _ym56(data):
    if len(data) < YM56_HEADER_LEN:
        raise ValueError('too short for YM5/6 header')
    results = struct.unpack_from(YM56_HEADER_FORMAT, data)
    info = {field: decode(x) for (field, _, decode), x in zip(YM56_HEADERS, results)}
    if info['checkString'] != YM_CHECK_STRING.decode('latin1'):
        raise ValueError('bad check string %r' % info['checkString'])
    del info['checkString']
    offset = YM56_HEADER_LEN + info.pop('skip')
    for drum in range(info['drums']):
        if offset + 4 > len(data):
            raise ValueError('truncated digidrum %u' % drum)
        drum_len = struct.unpack_from('>I', data, offset)[0]
        offset += 4 + drum_len
    for field in ('name', 'author', 'comment'):
        info[field], offset = _read_cstr(data, offset)
    info['interleaved'] = bool(info['attributes'] & YM_INTERLEAVED)
    info['registers'] = NUM_REGISTERS
    frame_len = info['frames'] * NUM_REGISTERS
    body = data[offset:offset + frame_len]
    if len(body) != frame_len:
        raise ValueError('truncated frame data: %u of %u bytes' % (len(body), frame_len))
    return (info, body)


def _depack_lha(ymfile, data):
    try:
        archive = lhafile.LhaFile(io.BytesIO(data))
        names = archive.namelist()
        if not names:
            raise ValueError('%s: empty LHA archive' % ymfile)
        logging.debug('depacking %s from %s', names[0], ymfile)
        return archive.read(names[0])
    except lhafile.BadLhafile as err:
        raise ValueError('%s: bad LHA archive: %s' % (ymfile, err)) from err


def _parse_ym(ymfile, data):
    if len(data) >= 7 and data[2:7] in LHA_METHODS:
        data = _depack_lha(ymfile, data)
    if len(data) < 4:
        raise ValueError('%s too short for a YM file' % ymfile)
    magic = strdecode(data[:4])
    if magic in ('YM2!', 'YM3!', 'YM3b'):
        info, body = _ym3(magic, data)
    elif magic in ('YM5!', 'YM6!'):
        info, body = _ym56(data)
    else:
        raise ValueError('%s: unsupported YM format %r' % (ymfile, magic))
    info['path'] = ymfile
    info['duration'] = info['frames'] / info['rate'] if info['rate'] else 0
    return (info, body)


def yminfo(ymfile):
    with open(ymfile, 'rb') as f:
        data = f.read()
    info, _ = _parse_ym(ymfile, data)
    return info


def read_ym(ymfile):
    with open(ymfile, 'rb') as f:
        data = f.read()
    info, body = _parse_ym(ymfile, data)
    regs = info['registers']
    frames = np.frombuffer(body, dtype=np.uint8)
    if info['interleaved']:
        frames = frames.reshape(regs, info['frames']).T
    else:
        frames = frames.reshape(info['frames'], regs)
    if regs < NUM_REGISTERS:
        frames = np.pad(frames, ((0, 0), (0, NUM_REGISTERS - regs)), constant_values=0)
    logging.debug('read %u frames from %s', len(frames), ymfile)
    return (info, frames)


def ym_snapshots(frames):
    masks = np.array(YM_REGISTER_MASKS, dtype=np.uint8)
    for frame in frames:
        shape = int(frame[YM_ENVELOPE_SHAPE_REG])
        frame = frame & masks
        snapshot = [int(val) for val in frame[:YM_CHIP_REGISTERS]]
        if shape == YM_NO_ENVELOPE_SHAPE:
            snapshot.append(None)
        else:
            snapshot.append(int(frame[YM_ENVELOPE_SHAPE_REG]))
        snapshot.extend([None] * (NUM_REGISTERS - len(snapshot)))
        yield tuple(snapshot)
