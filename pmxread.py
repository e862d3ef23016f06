# -*- coding: utf-8 -*-
"""
pmxread.py - Read-only PMX 2.0 model decoder.

Decodes a PMX byte stream into an immutable tree of frozen dataclasses.
References between elements are kept as indices (None when absent),
nothing is resolved or validated against collection sizes.

LICENCE: GPL-3.0-or-later (https://www.gnu.org/licenses/gpl-3.0.en.html)
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO, Iterator, Optional, Tuple, Type, TypeVar, Union

Vector2 = Tuple[float, float]
Vector3 = Tuple[float, float, float]
Vector4 = Tuple[float, float, float, float]

##################################################################################
class PmxError(Exception):
    pass

class UnsupportedVersionError(PmxError):
    pass

class InvalidFileError(PmxError):
    """Structural violation. `reason` names the field that failed."""
    def __init__(self, reason: str):
        super().__init__(f'invalid data: {reason}')
        self.reason = reason

class FileIOError(PmxError):
    """The underlying stream failed or ended before the record was complete."""
    def __init__(self, reason: str):
        super().__init__(f'io error: {reason}')
        self.reason = reason


E = TypeVar('E', bound=IntEnum)

def _enum(cls: Type[E], value: int, field: str) -> E:
    try:
        return cls(value)
    except ValueError:
        raise InvalidFileError(field) from None


class ReadStream:
    """
    Borrowed binary stream plus the per-file decode configuration.
    The stream is never closed here, the caller owns it.
    """
    _SIGNED = { 1 :"<b", 2 :"<h", 4 :"<i"}
    _UNSIGNED = { 1 :"<B", 2 :"<H", 4 :"<I"}
    _CHUNK_SIZE = 1 << 20

    def __init__(self, fin: BinaryIO, pmx_header: Optional[Header] = None):
        self.__fin = fin
        self.__header: Optional[Header] = None
        if pmx_header is not None:
            self.setHeader(pmx_header)

    def header(self) -> Header:
        if self.__header is None:
            raise PmxError('header has not been read yet')
        return self.__header

    def setHeader(self, pmx_header: Header):
        """Fix text encoding and index widths for the rest of the stream."""
        self.__header = pmx_header
        self.__charset = pmx_header.encoding.charset
        # One scratch buffer per reference kind, reused for every read.
        self.__vertex_buf = bytearray(pmx_header.vertex_index_size)
        self.__texture_buf = bytearray(pmx_header.texture_index_size)
        self.__material_buf = bytearray(pmx_header.material_index_size)
        self.__bone_buf = bytearray(pmx_header.bone_index_size)
        self.__morph_buf = bytearray(pmx_header.morph_index_size)
        self.__rigid_buf = bytearray(pmx_header.rigid_index_size)

    def __read(self, size: int) -> bytes:
        # Bounded chunks: a corrupt length prefix fails on the short stream,
        # never on allocating the claimed size up front.
        chunks = []
        remaining = size
        try:
            while remaining > 0:
                data = self.__fin.read(min(remaining, self._CHUNK_SIZE))
                if not data:
                    raise FileIOError(f'unexpected end of stream ({size - remaining} of {size} bytes)')
                chunks.append(data)
                remaining -= len(data)
        except OSError as e:
            raise FileIOError(str(e)) from e
        return b''.join(chunks)

    def __fill(self, buf: bytearray):
        buf[:] = self.__read(len(buf))

    def __readIndex(self, buf: bytearray, typedict) -> int:
        self.__fill(buf)
        index, = struct.unpack(typedict[len(buf)], buf)
        return index

    def __readSignedIndex(self, buf: bytearray) -> Optional[int]:
        index = self.__readIndex(buf, self._SIGNED)
        return index if index >= 0 else None

    # READ methods for indexes
    def readVertexIndex(self) -> Optional[int]:
        # Unsigned for 1 and 2 byte widths, signed for 4.
        if len(self.__vertex_buf) == 4:
            return self.__readSignedIndex(self.__vertex_buf)
        return self.__readIndex(self.__vertex_buf, self._UNSIGNED)

    def readBoneIndex(self) -> Optional[int]:
        return self.__readSignedIndex(self.__bone_buf)

    def readTextureIndex(self) -> Optional[int]:
        return self.__readSignedIndex(self.__texture_buf)

    def readMorphIndex(self) -> Optional[int]:
        return self.__readSignedIndex(self.__morph_buf)

    def readRigidIndex(self) -> Optional[int]:
        return self.__readSignedIndex(self.__rigid_buf)

    def readMaterialIndex(self) -> Optional[int]:
        return self.__readSignedIndex(self.__material_buf)

    # READ methods for general types
    def readInt(self) -> int:
        v, = struct.unpack('<i', self.__read(4))
        return v

    def readUnsignedInt(self) -> int:
        v, = struct.unpack('<I', self.__read(4))
        return v

    def readShort(self) -> int:
        v, = struct.unpack('<h', self.__read(2))
        return v

    def readUnsignedShort(self) -> int:
        v, = struct.unpack('<H', self.__read(2))
        return v

    def readStr(self) -> str:
        length = self.readUnsignedInt()
        buf = self.__read(length)
        if self.__charset == 'utf-16-le':
            buf = buf[:length & ~1] # whole code units only
        return str(buf, self.__charset, errors='replace')

    def readFloat(self) -> float:
        v, = struct.unpack('<f', self.__read(4))
        return v

    def readVector(self, size: int) -> tuple:
        return struct.unpack('<'+'f'*size, self.__read(4*size))

    def readByte(self) -> int:
        v, = struct.unpack('<B', self.__read(1))
        return v

    def readBytes(self, length: int) -> bytes:
        return self.__read(length)

    def readSignedByte(self) -> int:
        v, = struct.unpack('<b', self.__read(1))
        return v


class Encoding:
    _MAP = [
        (0, 'utf-16-le'),
        (1, 'utf-8'),
        ]

    def __init__(self, arg):
        t = None
        if isinstance(arg, str):
            t = [x for x in self._MAP if x[1] == arg]
        elif isinstance(arg, int):
            t = [x for x in self._MAP if x[0] == arg]
        if not t:
            raise InvalidFileError('header::encoding')
        self.index, self.charset = t[0]

    def __eq__(self, other):
        return isinstance(other, Encoding) and other.index == self.index

    def __hash__(self):
        return hash(self.index)

    def __repr__(self):
        return '<Encoding charset %s>'%self.charset


@dataclass(frozen=True)
class Header:
    PMX_SIGN = b'PMX '
    CONFIG_SIZE = 8

    version: float
    encoding: Encoding
    additional_uvs: int
    vertex_index_size: int
    texture_index_size: int
    material_index_size: int
    bone_index_size: int
    morph_index_size: int
    rigid_index_size: int

    @staticmethod
    def __readIndexSize(fs: ReadStream) -> int:
        v = fs.readByte()
        if v not in (1, 2, 4):
            raise InvalidFileError('header::index_size')
        return v

    @classmethod
    def load(cls, fs: ReadStream) -> Header:
        if fs.readBytes(4) != cls.PMX_SIGN:
            raise InvalidFileError('magic number')
        # The version is not checked, UnsupportedVersionError is reserved.
        version = fs.readFloat()
        if fs.readByte() != cls.CONFIG_SIZE:
            raise InvalidFileError('header::bytes')

        encoding = Encoding(fs.readByte())
        additional_uvs = fs.readByte()
        return cls(
            version=version,
            encoding=encoding,
            additional_uvs=additional_uvs,
            vertex_index_size=cls.__readIndexSize(fs),
            texture_index_size=cls.__readIndexSize(fs),
            material_index_size=cls.__readIndexSize(fs),
            bone_index_size=cls.__readIndexSize(fs),
            morph_index_size=cls.__readIndexSize(fs),
            rigid_index_size=cls.__readIndexSize(fs),
        )

    def __repr__(self):
        return '<Header version %.1f, encoding %s, uvs %d, vtx %d, tex %d, mat %d, bone %d, morph %d, rigid %d>'%(
            self.version,
            str(self.encoding),
            self.additional_uvs,
            self.vertex_index_size,
            self.texture_index_size,
            self.material_index_size,
            self.bone_index_size,
            self.morph_index_size,
            self.rigid_index_size,
            )


################################################################################
# Model Root Class
################################################################################
@dataclass(frozen=True)
class ModelInfo:
    name: str
    name_e: str
    comment: str
    comment_e: str

    @classmethod
    def load(cls, fs: ReadStream) -> ModelInfo:
        return cls(
            name=fs.readStr(),
            name_e=fs.readStr(),
            comment=fs.readStr(),
            comment_e=fs.readStr(),
        )


@dataclass(frozen=True)
class Model:
    header: Header
    info: ModelInfo

    vertices: Tuple[Vertex, ...]
    faces: Tuple[int, ...]
    textures: Tuple[Texture, ...]
    materials: Tuple[Material, ...]
    bones: Tuple[Bone, ...]
    morphs: Tuple[Morph, ...]
    display_groups: Tuple[DisplayGroup, ...]
    rigids: Tuple[RigidBody, ...]
    joints: Tuple[Joint, ...]

    @classmethod
    def load(cls, fs: ReadStream) -> Model:
        """Decode every section after the header, in file order."""
        logging.debug("======== Loading Model ========")
        header = fs.header()
        info = ModelInfo.load(fs)

        vertices = tuple(Vertex.load(fs) for _ in range(fs.readUnsignedInt()))
        logging.debug(f"Loaded {len(vertices)} vertices")

        faces = tuple(fs.readUnsignedInt() for _ in range(fs.readUnsignedInt()))
        logging.debug(f"Loaded {len(faces) // 3} faces")

        textures = tuple(Texture.load(fs) for _ in range(fs.readUnsignedInt()))
        logging.debug(f"Loaded {len(textures)} textures")

        materials = tuple(Material.load(fs) for _ in range(fs.readUnsignedInt()))
        logging.debug(f"Loaded {len(materials)} materials")

        bones = tuple(Bone.load(fs) for _ in range(fs.readUnsignedInt()))
        logging.debug(f"Loaded {len(bones)} bones")

        morphs = tuple(Morph.create(fs) for _ in range(fs.readUnsignedInt()))
        logging.debug(f"Loaded {len(morphs)} morphs")

        display_groups = tuple(DisplayGroup.load(fs) for _ in range(fs.readUnsignedInt()))
        logging.debug(f"Loaded {len(display_groups)} display groups")

        rigids = tuple(RigidBody.load(fs) for _ in range(fs.readUnsignedInt()))
        logging.debug(f"Loaded {len(rigids)} rigid bodies")

        joints = tuple(Joint.load(fs) for _ in range(fs.readUnsignedInt()))
        logging.debug(f"Loaded {len(joints)} joints")

        return cls(
            header=header,
            info=info,
            vertices=vertices,
            faces=faces,
            textures=textures,
            materials=materials,
            bones=bones,
            morphs=morphs,
            display_groups=display_groups,
            rigids=rigids,
            joints=joints,
        )

    def triangles(self) -> Iterator[Tuple[int, int, int]]:
        """Yield the face list three indices at a time."""
        faces = self.faces
        for i in range(0, len(faces) - len(faces) % 3, 3):
            yield faces[i], faces[i+1], faces[i+2]

    def __repr__(self):
        return '<Model name %s, name_e %s, vertices %d, materials %d, bones %d, morphs %d>'%(
            self.info.name,
            self.info.name_e,
            len(self.vertices),
            len(self.materials),
            len(self.bones),
            len(self.morphs),
            )


################################################################################
# Vertices
################################################################################
@dataclass(frozen=True)
class Vertex:
    co: Vector3
    normal: Vector3
    uv: Vector2
    additional_uvs: Tuple[Vector4, ...]
    weight: BoneWeight
    edge_scale: float

    @classmethod
    def load(cls, fs: ReadStream) -> Vertex:
        co = fs.readVector(3)
        normal = fs.readVector(3)
        uv = fs.readVector(2)
        additional_uvs = tuple(fs.readVector(4) for _ in range(fs.header().additional_uvs))
        weight = BoneWeight.create(fs)
        edge_scale = fs.readFloat()
        return cls(co, normal, uv, additional_uvs, weight, edge_scale)


class BoneWeight:
    BDEF1 = 0
    BDEF2 = 1
    BDEF4 = 2
    SDEF  = 3

    @staticmethod
    def create(fs: ReadStream) -> BoneWeight:
        _CLASSES = {
            BoneWeight.BDEF1: BoneWeightBDEF1,
            BoneWeight.BDEF2: BoneWeightBDEF2,
            BoneWeight.BDEF4: BoneWeightBDEF4,
            BoneWeight.SDEF: BoneWeightSDEF,
            }

        weight_type = fs.readByte()
        if weight_type not in _CLASSES:
            raise InvalidFileError('vertex::weight')
        return _CLASSES[weight_type].load(fs)

@dataclass(frozen=True)
class BoneWeightBDEF1(BoneWeight):
    bone: Optional[int]

    @property
    def type(self):
        return self.BDEF1

    @classmethod
    def load(cls, fs: ReadStream) -> BoneWeightBDEF1:
        return cls(fs.readBoneIndex())

@dataclass(frozen=True)
class BoneWeightBDEF2(BoneWeight):
    bones: Tuple[Optional[int], Optional[int]]
    weight: float

    @property
    def type(self):
        return self.BDEF2

    @classmethod
    def load(cls, fs: ReadStream) -> BoneWeightBDEF2:
        bones = (fs.readBoneIndex(), fs.readBoneIndex())
        return cls(bones, fs.readFloat())

@dataclass(frozen=True)
class BoneWeightBDEF4(BoneWeight):
    bones: Tuple[Optional[int], ...]
    weights: Vector4

    @property
    def type(self):
        return self.BDEF4

    @classmethod
    def load(cls, fs: ReadStream) -> BoneWeightBDEF4:
        bones = tuple(fs.readBoneIndex() for _ in range(4))
        return cls(bones, fs.readVector(4))

@dataclass(frozen=True)
class BoneWeightSDEF(BoneWeight):
    bones: Tuple[Optional[int], Optional[int]]
    weight: float
    c: Vector3
    r0: Vector3
    r1: Vector3

    @property
    def type(self):
        return self.SDEF

    @classmethod
    def load(cls, fs: ReadStream) -> BoneWeightSDEF:
        bones = (fs.readBoneIndex(), fs.readBoneIndex())
        weight = fs.readFloat()
        return cls(bones, weight, fs.readVector(3), fs.readVector(3), fs.readVector(3))


class Texture(str):
    """
    Texture file path as stored in the file.
    Materials refer to textures by index, the file itself is never opened.
    """
    @classmethod
    def load(cls, fs: ReadStream) -> Texture:
        return cls(fs.readStr())


################################################################################
# Materials
################################################################################
class SphereMode(IntEnum):
    OFF = 0
    MULT = 1
    ADD = 2
    SUBTEX = 3

@dataclass(frozen=True)
class TextureToon:
    texture: Optional[int]

@dataclass(frozen=True)
class SharedToon:
    index: int

@dataclass(frozen=True)
class Material:
    name: str
    name_e: str

    diffuse: Vector4
    specular: Vector3
    shininess: float
    ambient: Vector3

    is_double_sided: bool
    enabled_drop_shadow: bool
    enabled_self_shadow_map: bool
    enabled_self_shadow: bool
    enabled_toon_edge: bool
    enabled_vertex_color: bool
    is_point_draw: bool
    is_line_draw: bool

    edge_color: Vector4
    edge_size: float

    texture: Optional[int]
    sphere_texture: Optional[int]
    sphere_texture_mode: SphereMode
    toon: Union[TextureToon, SharedToon]

    comment: str
    vertex_count: int

    @property
    def is_shared_toon_texture(self) -> bool:
        return isinstance(self.toon, SharedToon)

    @classmethod
    def load(cls, fs: ReadStream) -> Material:
        name = fs.readStr()
        name_e = fs.readStr()

        diffuse = fs.readVector(4)
        specular = fs.readVector(3)
        shininess = fs.readFloat()
        ambient = fs.readVector(3)

        flags = fs.readByte()

        edge_color = fs.readVector(4)
        edge_size = fs.readFloat()

        texture = fs.readTextureIndex()
        sphere_texture = fs.readTextureIndex()
        sphere_texture_mode = _enum(SphereMode, fs.readByte(), 'material::sphere_mode')

        toon_type = fs.readByte()
        if toon_type == 0:
            toon = TextureToon(fs.readTextureIndex())
        elif toon_type == 1:
            toon = SharedToon(fs.readByte())
        else:
            raise InvalidFileError('material::toon')

        comment = fs.readStr()
        vertex_count = fs.readUnsignedInt()
        if vertex_count % 3 != 0:
            raise InvalidFileError('material::index_count')

        return cls(
            name=name,
            name_e=name_e,
            diffuse=diffuse,
            specular=specular,
            shininess=shininess,
            ambient=ambient,
            is_double_sided=bool(flags & 0x01),
            enabled_drop_shadow=bool(flags & 0x02),
            enabled_self_shadow_map=bool(flags & 0x04),
            enabled_self_shadow=bool(flags & 0x08),
            enabled_toon_edge=bool(flags & 0x10),
            enabled_vertex_color=bool(flags & 0x20),
            is_point_draw=bool(flags & 0x40),
            is_line_draw=bool(flags & 0x80),
            edge_color=edge_color,
            edge_size=edge_size,
            texture=texture,
            sphere_texture=sphere_texture,
            sphere_texture_mode=sphere_texture_mode,
            toon=toon,
            comment=comment,
            vertex_count=vertex_count,
        )

    def __repr__(self):
        return '<Material name %s, name_e %s, texture %s, sphere_texture %s, toon %s, vertex_count %d>'%(
            self.name,
            self.name_e,
            str(self.texture),
            str(self.sphere_texture),
            str(self.toon),
            self.vertex_count,
        )


################################################################################
# Bones
################################################################################
@dataclass(frozen=True)
class Limit:
    lower: Vector3
    upper: Vector3

    @classmethod
    def load(cls, fs: ReadStream) -> Limit:
        return cls(fs.readVector(3), fs.readVector(3))

@dataclass(frozen=True)
class Coordinate: # Used by Bone.local_coordinate
    x_axis: Vector3
    z_axis: Vector3

@dataclass(frozen=True)
class OffsetConnection:
    offset: Vector3

@dataclass(frozen=True)
class BoneConnection:
    bone: Optional[int]

@dataclass(frozen=True)
class AdditionalTransform:
    rotation: bool
    translation: bool
    local: bool
    bone: Optional[int]
    ratio: float

@dataclass(frozen=True)
class IKLink:
    bone: Optional[int]
    limits: Optional[Limit]

    @classmethod
    def load(cls, fs: ReadStream) -> IKLink:
        bone = fs.readBoneIndex()
        limits = Limit.load(fs) if fs.readByte() == 1 else None
        return cls(bone, limits)

@dataclass(frozen=True)
class IK:
    target: Optional[int]
    loop_count: int
    limit_angle: float
    links: Tuple[IKLink, ...]

    @classmethod
    def load(cls, fs: ReadStream) -> IK:
        target = fs.readBoneIndex()
        loop_count = fs.readUnsignedInt()
        limit_angle = fs.readFloat()
        links = tuple(IKLink.load(fs) for _ in range(fs.readUnsignedInt()))
        return cls(target, loop_count, limit_angle, links)


@dataclass(frozen=True)
class Bone:
    FLAG_CONNECTION_BONE = 0x0001
    FLAG_ROTATABLE = 0x0002
    FLAG_MOVABLE = 0x0004
    FLAG_VISIBLE = 0x0008
    FLAG_CONTROLLABLE = 0x0010
    FLAG_IK = 0x0020
    FLAG_ADD_LOCAL = 0x0080
    FLAG_ADD_ROTATION = 0x0100
    FLAG_ADD_LOCATION = 0x0200
    FLAG_FIXED_AXIS = 0x0400
    FLAG_LOCAL_COORDINATE = 0x0800
    FLAG_AFTER_PHYSICS = 0x1000
    FLAG_EXTERNAL_PARENT = 0x2000

    name: str
    name_e: str

    location: Vector3
    parent: Optional[int]
    transform_order: int

    display_connection: Union[OffsetConnection, BoneConnection]

    is_rotatable: bool
    is_movable: bool
    is_visible: bool
    is_controllable: bool
    trans_after_physics: bool

    additional_transform: Optional[AdditionalTransform]
    fixed_axis: Optional[Vector3]
    local_coordinate: Optional[Coordinate]
    external_parent: Optional[int]
    ik: Optional[IK]

    @property
    def is_ik(self) -> bool:
        return self.ik is not None

    @classmethod
    def load(cls, fs: ReadStream) -> Bone:
        name = fs.readStr()
        name_e = fs.readStr()

        location = fs.readVector(3)
        parent = fs.readBoneIndex()
        transform_order = fs.readInt()

        flags = fs.readUnsignedShort()

        # Optional payloads are positional, read them in flag-bit order.
        if flags & cls.FLAG_CONNECTION_BONE:
            display_connection = BoneConnection(fs.readBoneIndex())
        else:
            display_connection = OffsetConnection(fs.readVector(3))

        additional_transform = None
        if flags & (cls.FLAG_ADD_ROTATION | cls.FLAG_ADD_LOCATION):
            additional_transform = AdditionalTransform(
                rotation=bool(flags & cls.FLAG_ADD_ROTATION),
                translation=bool(flags & cls.FLAG_ADD_LOCATION),
                local=bool(flags & cls.FLAG_ADD_LOCAL),
                bone=fs.readBoneIndex(),
                ratio=fs.readFloat(),
            )

        fixed_axis = None
        if flags & cls.FLAG_FIXED_AXIS:
            fixed_axis = fs.readVector(3)

        local_coordinate = None
        if flags & cls.FLAG_LOCAL_COORDINATE:
            xaxis = fs.readVector(3)
            zaxis = fs.readVector(3)
            local_coordinate = Coordinate(xaxis, zaxis)

        external_parent = None
        if flags & cls.FLAG_EXTERNAL_PARENT:
            key = fs.readInt()
            external_parent = key if key >= 0 else None

        ik = None
        if flags & cls.FLAG_IK:
            ik = IK.load(fs)

        return cls(
            name=name,
            name_e=name_e,
            location=location,
            parent=parent,
            transform_order=transform_order,
            display_connection=display_connection,
            is_rotatable=bool(flags & cls.FLAG_ROTATABLE),
            is_movable=bool(flags & cls.FLAG_MOVABLE),
            is_visible=bool(flags & cls.FLAG_VISIBLE),
            is_controllable=bool(flags & cls.FLAG_CONTROLLABLE),
            trans_after_physics=bool(flags & cls.FLAG_AFTER_PHYSICS),
            additional_transform=additional_transform,
            fixed_axis=fixed_axis,
            local_coordinate=local_coordinate,
            external_parent=external_parent,
            ik=ik,
        )

    def __repr__(self):
        return '<Bone name %s, name_e %s>'%(
            self.name,
            self.name_e,)


################################################################################
# Morphs
################################################################################
class MorphCategory(IntEnum):
    SYSTEM = 0
    EYEBROW = 1
    EYE = 2
    MOUTH = 3
    OTHER = 4

class MaterialMorphOp(IntEnum):
    MULT = 0
    ADD = 1


@dataclass(frozen=True)
class GroupMorphOffset:
    morph: Optional[int]
    factor: float

    @classmethod
    def load(cls, fs: ReadStream) -> GroupMorphOffset:
        return cls(fs.readMorphIndex(), fs.readFloat())

@dataclass(frozen=True)
class VertexMorphOffset:
    vertex: Optional[int]
    offset: Vector3

    @classmethod
    def load(cls, fs: ReadStream) -> VertexMorphOffset:
        return cls(fs.readVertexIndex(), fs.readVector(3))

@dataclass(frozen=True)
class BoneMorphOffset:
    bone: Optional[int]
    location_offset: Vector3
    rotation_offset: Vector4

    @classmethod
    def load(cls, fs: ReadStream) -> BoneMorphOffset:
        return cls(fs.readBoneIndex(), fs.readVector(3), fs.readVector(4))

@dataclass(frozen=True)
class UVMorphOffset:
    vertex: Optional[int]
    offset: Vector4

    @classmethod
    def load(cls, fs: ReadStream) -> UVMorphOffset:
        return cls(fs.readVertexIndex(), fs.readVector(4))

@dataclass(frozen=True)
class MaterialMorphOffset:
    material: Optional[int]
    offset_type: MaterialMorphOp
    diffuse_offset: Vector4
    specular_offset: Vector3
    shininess_offset: float
    ambient_offset: Vector3
    edge_color_offset: Vector4
    edge_size_offset: float
    texture_factor: Vector4
    sphere_texture_factor: Vector4
    toon_texture_factor: Vector4

    @classmethod
    def load(cls, fs: ReadStream) -> MaterialMorphOffset:
        return cls(
            material=fs.readMaterialIndex(),
            offset_type=_enum(MaterialMorphOp, fs.readByte(), 'morph::material::op'),
            diffuse_offset=fs.readVector(4),
            specular_offset=fs.readVector(3),
            shininess_offset=fs.readFloat(),
            ambient_offset=fs.readVector(3),
            edge_color_offset=fs.readVector(4),
            edge_size_offset=fs.readFloat(),
            texture_factor=fs.readVector(4),
            sphere_texture_factor=fs.readVector(4),
            toon_texture_factor=fs.readVector(4),
        )


@dataclass(frozen=True)
class Morph:
    OFFSET_CLASS = None
    TYPE_INDEX = None

    name: str
    name_e: str
    category: MorphCategory
    offsets: tuple

    def __repr__(self):
        return '<%s name %s, name_e %s, offsets %d>'%(
            self.__class__.__name__, self.name, self.name_e, len(self.offsets))

    def type_index(self) -> int:
        return self.TYPE_INDEX

    @staticmethod
    def create(fs: ReadStream) -> Morph:
        _CLASSES = {
            0: GroupMorph,
            1: VertexMorph,
            2: BoneMorph,
            3: UVMorph,
            4: ExtendedUVMorph,
            5: ExtendedUVMorph,
            6: ExtendedUVMorph,
            7: ExtendedUVMorph,
            8: MaterialMorph,
            }

        name = fs.readStr()
        name_e = fs.readStr()
        category = _enum(MorphCategory, fs.readByte(), 'morph::panel')
        type_index = fs.readByte()
        num = fs.readUnsignedInt()
        if type_index not in _CLASSES:
            raise InvalidFileError('morph::kind')
        morph_class = _CLASSES[type_index]
        offsets = tuple(morph_class.OFFSET_CLASS.load(fs) for _ in range(num))
        if morph_class is ExtendedUVMorph:
            return ExtendedUVMorph(name, name_e, category, offsets, channel=type_index - 4)
        return morph_class(name, name_e, category, offsets)

@dataclass(frozen=True, repr=False)
class GroupMorph(Morph):
    OFFSET_CLASS = GroupMorphOffset
    TYPE_INDEX = 0

@dataclass(frozen=True, repr=False)
class VertexMorph(Morph):
    OFFSET_CLASS = VertexMorphOffset
    TYPE_INDEX = 1

@dataclass(frozen=True, repr=False)
class BoneMorph(Morph):
    OFFSET_CLASS = BoneMorphOffset
    TYPE_INDEX = 2

@dataclass(frozen=True, repr=False)
class UVMorph(Morph):
    OFFSET_CLASS = UVMorphOffset
    TYPE_INDEX = 3

@dataclass(frozen=True, repr=False)
class ExtendedUVMorph(UVMorph):
    """UV morph on one of the additional UV channels (0-3)."""
    channel: int = 0

    def type_index(self):
        return self.channel + 4

@dataclass(frozen=True, repr=False)
class MaterialMorph(Morph):
    OFFSET_CLASS = MaterialMorphOffset
    TYPE_INDEX = 8


################################################################################
# Display groups
################################################################################
class DisplayItemType(IntEnum):
    BONE = 0
    MORPH = 1

@dataclass(frozen=True)
class DisplayItem:
    disp_type: DisplayItemType
    index: Optional[int]

    @classmethod
    def load(cls, fs: ReadStream) -> DisplayItem:
        disp_type = _enum(DisplayItemType, fs.readByte(), 'display_group::elements')
        if disp_type == DisplayItemType.BONE:
            return cls(disp_type, fs.readBoneIndex())
        return cls(disp_type, fs.readMorphIndex())

@dataclass(frozen=True)
class DisplayGroup:
    name: str
    name_e: str
    is_special: bool
    items: Tuple[DisplayItem, ...]

    @classmethod
    def load(cls, fs: ReadStream) -> DisplayGroup:
        name = fs.readStr()
        name_e = fs.readStr()
        is_special = (fs.readByte() == 1)
        items = tuple(DisplayItem.load(fs) for _ in range(fs.readUnsignedInt()))
        return cls(name, name_e, is_special, items)


################################################################################
# Physics
################################################################################
class RigidShape(IntEnum):
    SPHERE = 0
    BOX = 1
    CAPSULE = 2

class RigidMode(IntEnum):
    STATIC = 0
    DYNAMIC = 1
    DYNAMIC_BONE = 2

class JointMode(IntEnum):
    SPRING_6DOF = 0


@dataclass(frozen=True)
class RigidBody:
    name: str
    name_e: str

    bone: Optional[int]
    collision_group_number: int
    collision_group_mask: int

    type: RigidShape
    size: Vector3

    location: Vector3
    rotation: Vector3

    mass: float
    velocity_attenuation: float
    rotation_attenuation: float
    bounce: float
    friction: float

    mode: RigidMode

    @classmethod
    def load(cls, fs: ReadStream) -> RigidBody:
        return cls(
            name=fs.readStr(),
            name_e=fs.readStr(),
            bone=fs.readBoneIndex(),
            collision_group_number=fs.readByte(),
            collision_group_mask=fs.readUnsignedShort(),
            type=_enum(RigidShape, fs.readByte(), 'rigid::shape'),
            size=fs.readVector(3),
            location=fs.readVector(3),
            rotation=fs.readVector(3),
            mass=fs.readFloat(),
            velocity_attenuation=fs.readFloat(),
            rotation_attenuation=fs.readFloat(),
            bounce=fs.readFloat(),
            friction=fs.readFloat(),
            mode=_enum(RigidMode, fs.readByte(), 'rigid::method'),
        )

    def __repr__(self):
        return '<Rigid name %s, name_e %s>'%(
            self.name,
            self.name_e,
            )


@dataclass(frozen=True)
class Joint:
    name: str
    name_e: str

    mode: JointMode

    src_rigid: Optional[int]
    dst_rigid: Optional[int]

    location: Vector3
    rotation: Vector3

    location_limit: Limit
    rotation_limit: Limit

    spring_constant: Vector3
    spring_rotation_constant: Vector3

    @classmethod
    def load(cls, fs: ReadStream) -> Joint:
        return cls(
            name=fs.readStr(),
            name_e=fs.readStr(),
            mode=_enum(JointMode, fs.readByte(), 'joint::type'),
            src_rigid=fs.readRigidIndex(),
            dst_rigid=fs.readRigidIndex(),
            location=fs.readVector(3),
            rotation=fs.readVector(3),
            location_limit=Limit.load(fs),
            rotation_limit=Limit.load(fs),
            spring_constant=fs.readVector(3),
            spring_rotation_constant=fs.readVector(3),
        )

    def __repr__(self):
        return '<Joint name %s, name_e %s>'%(
            self.name,
            self.name_e,
            )


def read(stream: BinaryIO) -> Model:
    """Decode a whole PMX model from an open binary stream. The stream is left open."""
    fs = ReadStream(stream)
    header = Header.load(fs)
    fs.setHeader(header)
    return Model.load(fs)

def load(path: str) -> Model:
    with open(path, 'rb') as fin:
        return read(fin)
