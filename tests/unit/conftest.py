"""
单元测试公共夹具
"""

import pytest

from image_builders import SAMPLE_ENTRIES, build_image


@pytest.fixture
def sample_image(tmp_path):
    """写入磁盘的示例镜像"""
    path = tmp_path / "coreos_production_pxe_image.cpio.gz"
    path.write_bytes(build_image(SAMPLE_ENTRIES))
    return path


@pytest.fixture
def cloud_config(tmp_path):
    """示例 cloud-config 文件"""
    path = tmp_path / "cloud-config.yml"
    path.write_bytes(b"abc")
    return path
