# Copyright 2020-2022 Josh Bailey (josh@vandervecken.com)

## Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated documentation files (the "Software"), to deal in the Software without restriction, including without limitation the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software, and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

## The above copyright notice and this permission notice shall be included in all copies or substantial portions of the Software.

import os
import pandas as pd


def read_csv(*args, **kwargs):
    return pd.read_csv(*args, **kwargs, engine='pyarrow')


def out_path(in_name, new_ext):
    in_name = os.path.expanduser(in_name)
    base = os.path.basename(in_name)
    recogized_exts = {'xz', 'gz', 'ym', 'psym', 'py', 'log', 'txt', 'csv'}
    while True:
        dot = base.rfind('.')
        if dot <= 0:
            break
        ext = base[dot+1:]
        if not ext:
            break
        if ext.lower() not in recogized_exts:
            break
        base = base[:dot]
    return os.path.join(os.path.dirname(in_name), '.'.join((base, new_ext)))


def py_path(in_name):
    return out_path(in_name, 'py')


def tmp_path(file_name):
    return os.path.join(os.path.dirname(file_name), '.' + os.path.basename(file_name))


def atomic_write(file_name, data):
    """Write data to a dotted temporary file beside file_name, then rename it into place."""
    file_name = os.path.expanduser(file_name)
    file_name_tmp = tmp_path(file_name)
    try:
        with open(file_name_tmp, 'wb') as f:
            f.write(data)
        os.replace(file_name_tmp, file_name)
    except OSError:
        if os.path.exists(file_name_tmp):
            os.unlink(file_name_tmp)
        raise
