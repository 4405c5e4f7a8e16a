import json

import msgspec
import pytest

import mbus
from mbus.msgs import types


def test_json_encode_and_decode():
    encode_and_decode(json.dumps, json.loads, dump_is_bytes=False)


def test_mbus_encode_and_decode():
    encode_and_decode(mbus.json.dumps, mbus.json.loads)


def encode_and_decode(dumps, loads, dump_is_bytes=True):

    input_dictionary = dict()
    input_dictionary['list'] = [1, 2, 3, 'a', 'b', None, 'c', 'z']
    input_dictionary['dict'] = {1: 'one', 'two': 2}
    input_dictionary['none'] = None
    input_dictionary['true'] = True
    input_dictionary['false'] = False

    encoded = dumps(input_dictionary)

    if dump_is_bytes:
        assert isinstance(encoded, bytes)
    else:
        assert isinstance(encoded, str)

    decoded = loads(encoded)
    assert isinstance(decoded, dict)

    # Integer keys come back as strings; JSON has no other kind of key.

    assert decoded != input_dictionary

    del decoded['dict']['1']
    decoded['dict'][1] = 'one'
    assert decoded == input_dictionary


def test_typed_decode():

    encoded = mbus.json.dumps(types.Vector3d(x=1.0, y=-2.5))
    decoded = mbus.json.loads_as(encoded, types.Vector3d)

    assert isinstance(decoded, types.Vector3d)
    assert decoded.y == -2.5
    assert decoded.header == types.Header()


def test_typed_decode_mismatch():

    with pytest.raises(msgspec.ValidationError):
        mbus.json.loads_as(b'{"data": 5}', types.StringMsg)

    with pytest.raises(mbus.json.DecodeError):
        mbus.json.loads(b'{not json')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
