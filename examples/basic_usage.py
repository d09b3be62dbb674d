"""Basic usage example for zenarchive.

This example demonstrates how to:
- Write the same object tree in all three wire formats
- Read objects back and skip subtrees you are not interested in
- Tighten the BIN_SAFE hash check through configuration
"""

import io
import logging

from zenarchive import (
    ArchiveConfig,
    ArchiveFormat,
    Color,
    HashCheckPolicy,
    Vec3,
    configure_logging,
    create_archive,
    open_archive,
)


def write_world(archive):
    archive.write_object_begin("%", "oCWorld", 64513)
    archive.write_string("worldName", "NEWWORLD")

    # A vob with a child that readers usually skip.
    archive.write_object_begin("%", "zCVob", 52224)
    archive.write_string("vobName", "START")
    archive.write_vec3("trafoOSToWSPos", Vec3(0.0, 150.0, -2200.0))
    archive.write_object_begin("visual", "zCDecal", 0)
    archive.write_color("decalColor", Color(255, 255, 255, 128))
    archive.write_object_end()
    archive.write_object_end()

    archive.write_bool("showLights", True)
    archive.write_object_end()


def read_world(data: bytes, config: ArchiveConfig = None):
    with open_archive(data, config) as archive:
        print(f"  format={archive.header.format.name} objects={archive.object_count}")

        world = archive.read_object_begin()
        print(f"  {world.class_name} v{world.version}: {archive.read_string()}")

        vob = archive.read_object_begin()
        print(f"  {vob.class_name} {archive.read_string()} at {archive.read_vec3()}")
        # Drop the rest of the vob, visual included.
        archive.skip_object(skip_current=True)

        print(f"  showLights={archive.read_bool()}")
        archive.read_object_end()
        archive.verify_balanced()


def main():
    configure_logging(level=logging.WARNING)
    config = ArchiveConfig(user="example", hash_check_policy=HashCheckPolicy.STRICT)

    for archive_format in ArchiveFormat:
        buffer = io.BytesIO()
        with create_archive(buffer, archive_format, config) as archive:
            write_world(archive)

        data = buffer.getvalue()
        print(f"{archive_format.token}: {len(data)} bytes")
        read_world(data, config)

    ascii_buffer = io.BytesIO()
    with create_archive(ascii_buffer, ArchiveFormat.ASCII, config) as archive:
        write_world(archive)
    print()
    print(ascii_buffer.getvalue().decode(config.encoding))


if __name__ == "__main__":
    main()
