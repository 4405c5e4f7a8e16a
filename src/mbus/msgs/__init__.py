""" The message factory. Message types are :class:`msgspec.Struct`
    subclasses held in a registry keyed by type name; :func:`new` is the
    one way the rest of mbus turns a type name (and, optionally, some
    initializing text) into a message instance.

    Every registered type has a canonical name, such as
    ``mbus.msgs.StringMsg``, and an alias consisting of the bare class name,
    such as ``StringMsg``. :func:`type_name` always returns the canonical
    name for a message instance.
"""

import msgspec

from .. import json
from . import text
from . import types


prefix = 'mbus.msgs.'

_by_name = dict()
_by_class = dict()


class FactoryError(ValueError):
    """ A message could not be constructed: either the type name is not
        registered, or the initializing text does not fit the type.
    """
    pass


def register(cls, name=None):
    """ Add the message class *cls* to the registry. If *name* is not
        specified the canonical name is the class name with the standard
        ``mbus.msgs.`` prefix. The class is returned, so that this function
        can be used as a decorator.
    """

    if not (isinstance(cls, type) and issubclass(cls, msgspec.Struct)):
        raise TypeError('message types must be msgspec.Struct subclasses, not %r' % (cls))

    if name is None:
        name = prefix + cls.__name__

    existing = _by_name.get(name)
    if existing is not None and existing is not cls:
        raise ValueError('message type already registered: ' + name)

    _by_name[name] = cls
    _by_class[cls] = name
    return cls


def resolve(name):
    """ Return the registered class for the type *name*, which may be either
        the canonical name or the alias. Raises :class:`FactoryError` if the
        type is unknown.
    """

    if name is None or name == '':
        raise FactoryError('message type must be specified')

    try:
        return _by_name[name]
    except KeyError:
        pass

    try:
        return _by_name[prefix + name]
    except KeyError:
        pass

    raise FactoryError('unknown message type: ' + str(name))


def new(name, data=None):
    """ Return a new message of type *name*. If *data* is specified it is
        interpreted according to the text format in :mod:`mbus.msgs.text`
        and applied to the fields of the new message; otherwise every field
        has its default value.
    """

    cls = resolve(name)

    if data is None:
        return cls()

    try:
        fields = text.parse(data, cls)
        return json.convert(fields, cls)
    except (text.TextFormatError, msgspec.ValidationError) as e:
        raise FactoryError('invalid data for %s: %s' % (type_name(cls), str(e)))


def types_list():
    """ Return the sorted canonical names of all registered message types.
    """

    return sorted(_by_name.keys())


def type_name(message):
    """ Return the canonical type name for *message*, which can be either an
        instance or a registered class.
    """

    if isinstance(message, type):
        cls = message
    else:
        cls = type(message)

    try:
        return _by_class[cls]
    except KeyError:
        raise FactoryError('unregistered message class: ' + cls.__name__)


def debug_string(message):
    """ Return the human-readable rendering of *message*.
    """

    return text.render(message)


def encode(message):
    """ Serialize *message* as bytes for the wire.
    """

    return json.dumps(message)


def decode(name, payload):
    """ Deserialize *payload* bytes as a message of type *name*.
    """

    cls = resolve(name)

    if payload is None or payload == b'':
        return cls()

    try:
        return json.loads_as(payload, cls)
    except (json.DecodeError, msgspec.ValidationError) as e:
        raise FactoryError('invalid payload for %s: %s' % (type_name(cls), str(e)))


def fill(container, source):
    """ Copy every field of *source* into *container*, in place. Both must
        be the same message type; this is how a pre-allocated response is
        populated when a reply arrives.
    """

    if type(container) is not type(source):
        raise FactoryError('cannot fill %s from %s' % (type(container).__name__, type(source).__name__))

    for field in msgspec.structs.fields(type(source)):
        setattr(container, field.name, getattr(source, field.name))


for cls in types.standard:
    register(cls)

del cls


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
