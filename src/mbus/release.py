""" Release identification for mbus. """

major = 1
minor = 2
patch = 0


def string():
    """ Return the dotted major.minor.patch release string. """

    return '%d.%d.%d' % (major, minor, patch)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
