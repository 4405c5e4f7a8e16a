""" The standard message types. Every class defined here is registered with
    the factory under ``mbus.msgs.<ClassName>``, and can also be requested by
    the bare class name.
"""

from typing import Annotated, List

import msgspec


int32 = Annotated[int, msgspec.Meta(ge=-2**31, le=2**31 - 1)]
int64 = Annotated[int, msgspec.Meta(ge=-2**63, le=2**63 - 1)]
uint32 = Annotated[int, msgspec.Meta(ge=0, le=2**32 - 1)]


class Empty(msgspec.Struct):
    pass


class Boolean(msgspec.Struct):
    data: bool = False


class Int32(msgspec.Struct):
    data: int32 = 0


class Int64(msgspec.Struct):
    data: int64 = 0


class UInt32(msgspec.Struct):
    data: uint32 = 0


class Float(msgspec.Struct):
    data: float = 0.0


class Double(msgspec.Struct):
    data: float = 0.0


class StringMsg(msgspec.Struct):
    data: str = ''


class StringMsg_V(msgspec.Struct):
    data: List[str] = msgspec.field(default_factory=list)


class Int32_V(msgspec.Struct):
    data: List[int32] = msgspec.field(default_factory=list)


class Time(msgspec.Struct):
    sec: int64 = 0
    nsec: int32 = 0


class Header(msgspec.Struct):
    stamp: Time = msgspec.field(default_factory=Time)
    frame_id: str = ''


class Vector3d(msgspec.Struct):
    header: Header = msgspec.field(default_factory=Header)
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Quaternion(msgspec.Struct):
    header: Header = msgspec.field(default_factory=Header)
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0


class Pose(msgspec.Struct):
    header: Header = msgspec.field(default_factory=Header)
    name: str = ''
    id: uint32 = 0
    position: Vector3d = msgspec.field(default_factory=Vector3d)
    orientation: Quaternion = msgspec.field(default_factory=Quaternion)


class Pose_V(msgspec.Struct):
    header: Header = msgspec.field(default_factory=Header)
    pose: List[Pose] = msgspec.field(default_factory=list)


standard = (
    Empty,
    Boolean,
    Int32,
    Int64,
    UInt32,
    Float,
    Double,
    StringMsg,
    StringMsg_V,
    Int32_V,
    Time,
    Header,
    Vector3d,
    Quaternion,
    Pose,
    Pose_V,
)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
