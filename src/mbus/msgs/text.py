""" A human-oriented text format for messages, shaped like the protobuf text
    format: ``name: value`` pairs, with nested messages written as
    ``name { ... }``. :func:`parse` turns text into builtins suitable for
    :func:`mbus.json.convert`; :func:`render` goes the other way, producing
    the debug rendering printed by the command-line tools.

    Examples of accepted text::

        data: "hello"
        x: 1, y: 2.5, z: -3
        header { stamp { sec: 10 } } name: "arm"
        data: "one" data: "two"
"""

import math
import re
import typing

import msgspec


class TextFormatError(ValueError):
    """ The text could not be interpreted for the requested message type.
    """
    pass


_token = re.compile(r'''
      (?P<space>  \s+ | \#[^\n]* )
    | (?P<string> "(?:[^"\\\n]|\\.)*" | '(?:[^'\\\n]|\\.)*' )
    | (?P<punct>  [{}:,;<>] )
    | (?P<word>   [A-Za-z0-9_.+\-]+ )
''', re.VERBOSE)

_escapes = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '"': '"',
    "'": "'",
    '\\': '\\',
}

_closing = {'{': '}', '<': '>'}


class _Bareword(str):
    """ Marker for an unquoted token, so that identifiers are not silently
        accepted where a quoted string is required.
    """
    pass


def _tokenize(text):

    tokens = list()
    position = 0
    length = len(text)

    while position < length:
        match = _token.match(text, position)
        if match is None:
            raise TextFormatError('unexpected character %r at offset %d' % (text[position], position))

        kind = match.lastgroup
        value = match.group()
        position = match.end()

        if kind == 'space':
            continue

        tokens.append((kind, value))

    return tokens


def _unquote(token):

    body = token[1:-1]
    result = list()
    characters = iter(body)

    for character in characters:
        if character != '\\':
            result.append(character)
            continue

        escaped = next(characters)
        try:
            result.append(_escapes[escaped])
        except KeyError:
            raise TextFormatError('unsupported escape sequence: \\' + escaped)

    return ''.join(result)


def _scalar(kind, token):

    if kind == 'string':
        return _unquote(token)

    if token in ('true', 'True', 't'):
        return True
    if token in ('false', 'False', 'f'):
        return False

    try:
        return int(token, 0)
    except ValueError:
        pass

    lowered = token.lower()
    if lowered in ('inf', 'infinity', '+inf', '-inf', '-infinity', 'nan'):
        return float(lowered)

    try:
        return float(token)
    except ValueError:
        pass

    return _Bareword(token)


class _Parser:

    def __init__(self, text):
        self.tokens = _tokenize(text)
        self.position = 0


    def peek(self):
        try:
            return self.tokens[self.position]
        except IndexError:
            return (None, None)


    def take(self):
        token = self.peek()
        if token[0] is None:
            raise TextFormatError('unexpected end of text')
        self.position += 1
        return token


    def fields(self, closing=None):
        """ Parse a sequence of fields, returning a list of (name, value)
            pairs. Nested messages are themselves lists of pairs.
        """

        pairs = list()

        while True:
            kind, token = self.peek()

            if kind is None:
                if closing is not None:
                    raise TextFormatError("missing closing '%s'" % (closing))
                return pairs

            if kind == 'punct' and token == closing:
                self.take()
                return pairs

            if kind == 'punct' and token in (',', ';'):
                self.take()
                continue

            if kind != 'word':
                raise TextFormatError('expected a field name, found %r' % (token))

            name = token
            self.take()
            pairs.append((name, self.value(name)))


    def value(self, name):

        kind, token = self.peek()
        colon = False

        if kind == 'punct' and token == ':':
            colon = True
            self.take()
            kind, token = self.peek()

        if kind == 'punct' and token in _closing:
            self.take()
            return self.fields(_closing[token])

        if colon == False:
            raise TextFormatError("expected ':' after field name %r" % (name))

        if kind in ('string', 'word'):
            self.take()
            return _scalar(kind, token)

        raise TextFormatError('missing value for field %r' % (name))


# end of class _Parser



def parse(text, cls):
    """ Parse *text* into a dictionary appropriate for the message class
        *cls*. Field names are checked against *cls*; value types are left
        for :func:`msgspec.convert` to validate.
    """

    if text is None:
        return dict()

    pairs = _Parser(text).fields()
    return _to_builtins(cls, pairs)


def _is_struct(annotation):
    return isinstance(annotation, type) and issubclass(annotation, msgspec.Struct)


def _list_item(annotation):
    """ Return the element type if *annotation* is a list type, otherwise
        return None.
    """

    origin = typing.get_origin(annotation)
    if origin is list:
        arguments = typing.get_args(annotation)
        if arguments:
            return arguments[0]
        return typing.Any

    return None


def _to_builtins(cls, pairs):

    fields = dict()
    for field in msgspec.structs.fields(cls):
        fields[field.name] = field.type

    result = dict()

    for name, value in pairs:
        try:
            annotation = fields[name]
        except KeyError:
            raise TextFormatError('message %s has no field named %r' % (cls.__name__, name))

        item = _list_item(annotation)

        if item is None:
            if name in result:
                raise TextFormatError('field %r is not repeated but appears more than once' % (name))
            result[name] = _field_value(name, annotation, value)
        else:
            result.setdefault(name, list()).append(_field_value(name, item, value))

    return result


def _field_value(name, annotation, value):

    if _is_struct(annotation):
        if not isinstance(value, list):
            raise TextFormatError('field %r is a message, expected { ... }' % (name))
        return _to_builtins(annotation, value)

    if isinstance(value, list):
        raise TextFormatError('field %r is not a message, got { ... }' % (name))

    if isinstance(value, _Bareword):
        raise TextFormatError('unexpected value %r for field %r' % (str(value), name))

    return value


def render(message, indent=0):
    """ Return the debug rendering of *message*. Fields equal to their
        default value are omitted, mirroring the protobuf debug format.
    """

    lines = list()
    _render(message, indent, lines)
    return ''.join(lines)


def _render(message, indent, lines):

    prefix = ' ' * indent

    for field in msgspec.structs.fields(type(message)):
        value = getattr(message, field.name)

        if _is_default(field, value):
            continue

        if isinstance(value, list):
            values = value
        else:
            values = (value,)

        for value in values:
            if isinstance(value, msgspec.Struct):
                lines.append('%s%s {\n' % (prefix, field.name))
                _render(value, indent + 2, lines)
                lines.append('%s}\n' % (prefix))
            else:
                lines.append('%s%s: %s\n' % (prefix, field.name, _format(value)))


def _is_default(field, value):

    if field.default is not msgspec.NODEFAULT:
        default = field.default
    elif field.default_factory is not msgspec.NODEFAULT:
        default = field.default_factory()
    else:
        return False

    return value == default


def _format(value):

    if isinstance(value, bool):
        if value:
            return 'true'
        return 'false'

    if isinstance(value, str):
        return '"' + _quote(value) + '"'

    if isinstance(value, float):
        if math.isnan(value):
            return 'nan'
        if math.isinf(value):
            if value > 0:
                return 'inf'
            return '-inf'
        if value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)

    return str(value)


def _quote(value):

    value = value.replace('\\', '\\\\')
    value = value.replace('"', '\\"')
    value = value.replace('\n', '\\n')
    value = value.replace('\t', '\\t')
    value = value.replace('\r', '\\r')
    return value


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
