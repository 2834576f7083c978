#!/usr/bin/env python3
"""
生成 ENCRYPTION_KEY (64位十六进制)，写入 .env 使用
"""

import sys
from pathlib import Path

backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from otpvault.common.config import generate_encryption_key


if __name__ == "__main__":
    print(f"ENCRYPTION_KEY={generate_encryption_key()}")
