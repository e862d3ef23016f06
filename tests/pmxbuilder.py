"""In-memory PMX byte composer used by the tests."""
import io
import struct

SECTIONS = (
    "info", "vertices", "faces", "textures", "materials",
    "bones", "morphs", "display_groups", "rigids", "joints",
)


class PmxWriter:
    def __init__(self, encoding=1, additional_uvs=0,
                 vertex=1, texture=1, material=1, bone=1, morph=1, rigid=1):
        self.__out = io.BytesIO()
        self.charset = ('utf-16-le', 'utf-8')[encoding]
        self.encoding = encoding
        self.additional_uvs = additional_uvs
        self.vertex_index_size = vertex
        self.texture_index_size = texture
        self.material_index_size = material
        self.bone_index_size = bone
        self.morph_index_size = morph
        self.rigid_index_size = rigid

    def getvalue(self) -> bytes:
        return self.__out.getvalue()

    def stream(self) -> io.BytesIO:
        return io.BytesIO(self.getvalue())

    def __writeIndex(self, index, size, typedict):
        self.__out.write(struct.pack(typedict[size], -1 if index is None else int(index)))

    def __writeSignedIndex(self, index, size):
        self.__writeIndex(index, size, { 1 :"<b", 2 :"<h", 4 :"<i"})

    def __writeUnsignedIndex(self, index, size):
        self.__writeIndex(index, size, { 1 :"<B", 2 :"<H", 4 :"<I"})

    # WRITE methods for indexes
    def writeVertexIndex(self, index):
        if self.vertex_index_size == 4:
            self.__writeSignedIndex(index, 4)
        else:
            self.__writeUnsignedIndex(index, self.vertex_index_size)

    def writeBoneIndex(self, index):
        self.__writeSignedIndex(index, self.bone_index_size)

    def writeTextureIndex(self, index):
        self.__writeSignedIndex(index, self.texture_index_size)

    def writeMorphIndex(self, index):
        self.__writeSignedIndex(index, self.morph_index_size)

    def writeRigidIndex(self, index):
        self.__writeSignedIndex(index, self.rigid_index_size)

    def writeMaterialIndex(self, index):
        self.__writeSignedIndex(index, self.material_index_size)

    # WRITE methods for general types
    def writeInt(self, v):
        self.__out.write(struct.pack('<i', int(v)))

    def writeUnsignedInt(self, v):
        self.__out.write(struct.pack('<I', int(v)))

    def writeUnsignedShort(self, v):
        self.__out.write(struct.pack('<H', int(v)))

    def writeStr(self, v):
        data = v.encode(self.charset)
        self.writeUnsignedInt(len(data))
        self.__out.write(data)

    def writeFloat(self, v):
        self.__out.write(struct.pack('<f', float(v)))

    def writeVector(self, v):
        self.__out.write(struct.pack('<'+'f'*len(v), *v))

    def writeByte(self, v):
        self.__out.write(struct.pack('<B', int(v)))

    def writeBytes(self, v):
        self.__out.write(v)

    # Composite helpers
    def writeHeader(self, sign=b'PMX ', version=2.0, config_size=8):
        self.writeBytes(sign)
        self.writeFloat(version)
        self.writeByte(config_size)
        self.writeByte(self.encoding)
        self.writeByte(self.additional_uvs)
        for size in (self.vertex_index_size, self.texture_index_size, self.material_index_size,
                     self.bone_index_size, self.morph_index_size, self.rigid_index_size):
            self.writeByte(size)

    def writeInfo(self, name="", name_e="", comment="", comment_e=""):
        for s in (name, name_e, comment, comment_e):
            self.writeStr(s)

    def writeEmptySections(self, first="vertices"):
        """Write zero counts for `first` and every section after it."""
        for section in SECTIONS[SECTIONS.index(first):]:
            if section == "info":
                self.writeInfo()
            else:
                self.writeUnsignedInt(0)

    def writeNames(self, name="", name_e=""):
        self.writeStr(name)
        self.writeStr(name_e)

    def writeMaterial(self, name="mat", flags=0x01, texture=None, sphere=None, sphere_mode=0,
                      toon_type=1, toon=0, comment="", vertex_count=3):
        self.writeNames(name, name + "_e")
        self.writeVector((1.0, 0.5, 0.25, 1.0))  # diffuse
        self.writeVector((0.5, 0.5, 0.5))  # specular
        self.writeFloat(5.0)  # shininess
        self.writeVector((0.25, 0.25, 0.25))  # ambient
        self.writeByte(flags)
        self.writeVector((0.0, 0.0, 0.0, 1.0))  # edge color
        self.writeFloat(1.0)  # edge size
        self.writeTextureIndex(texture)
        self.writeTextureIndex(sphere)
        self.writeByte(sphere_mode)
        self.writeByte(toon_type)
        if toon_type == 0:
            self.writeTextureIndex(toon)
        else:
            self.writeByte(toon)
        self.writeStr(comment)
        self.writeUnsignedInt(vertex_count)

    def writeRigid(self, name="rigid", bone=0, shape=1, mode=1):
        self.writeNames(name, "")
        self.writeBoneIndex(bone)
        self.writeByte(3)  # group
        self.writeUnsignedShort(0xFFFE)  # non-collision mask
        self.writeByte(shape)
        self.writeVector((1.0, 2.0, 3.0))  # size
        self.writeVector((0.0, 10.0, 0.0))  # location
        self.writeVector((0.0, 0.5, 0.0))  # rotation
        self.writeFloat(1.5)  # mass
        self.writeFloat(0.5)  # velocity attenuation
        self.writeFloat(0.25)  # rotation attenuation
        self.writeFloat(0.0)  # bounce
        self.writeFloat(0.5)  # friction
        self.writeByte(mode)

    def writeJoint(self, name="joint", mode=0, src=0, dst=1):
        self.writeNames(name, "")
        self.writeByte(mode)
        self.writeRigidIndex(src)
        self.writeRigidIndex(dst)
        self.writeVector((0.0, 1.0, 0.0))  # location
        self.writeVector((0.0, 0.0, 0.0))  # rotation
        self.writeVector((-1.0, -1.0, -1.0))  # location lower
        self.writeVector((1.0, 1.0, 1.0))  # location upper
        self.writeVector((-0.5, -0.5, -0.5))  # rotation lower
        self.writeVector((0.5, 0.5, 0.5))  # rotation upper
        self.writeVector((10.0, 10.0, 10.0))  # spring
        self.writeVector((20.0, 20.0, 20.0))  # rotation spring


def minimal_model(**kwargs) -> bytes:
    """Header, empty model info, zero counts everywhere."""
    w = PmxWriter(**kwargs)
    w.writeHeader()
    w.writeEmptySections("info")
    return w.getvalue()
