''' Wrapper module for the equivalent of :func:`json.loads` and
    :func:`json.dumps`, backed by msgspec. Every component that puts JSON
    on the wire goes through here, so that the choice of library is made
    in exactly one place.
'''

import msgspec


# The msgspec 'encode' operation returns bytes. Anything handing the result
# to a socket expects bytes, so 'dumps' is defined to always return bytes.

encoder = msgspec.json.Encoder()
decoder = msgspec.json.Decoder()

dumps = encoder.encode
loads = decoder.decode

DecodeError = msgspec.DecodeError
EncodeError = msgspec.EncodeError


def loads_as(data, type):
    """ Decode JSON *data* directly into an instance of *type*.
    """

    return msgspec.json.decode(data, type=type)


def convert(value, type):
    """ Convert a decoded *value* (dictionaries, lists, and scalars) into an
        instance of *type*, validating along the way. Raises
        :class:`msgspec.ValidationError` if the value does not fit.
    """

    return msgspec.convert(value, type=type)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
