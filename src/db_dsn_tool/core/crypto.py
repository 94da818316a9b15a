"""
加密模块

DSN 存储中的每个字段都以 Fernet 对称加密保存，密钥由 PBKDF2 从随机口令和盐值派生。
口令、盐值和迭代次数可导出为 key_info 持久化，并通过 from_saved_key 恢复。
"""

import base64
import binascii
import secrets
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..utils.logging_utils import get_logger
from .exceptions import CryptoError

logger = get_logger(__name__)


class CryptoManager:
    """
    加密管理器

    Attributes:
        DEFAULT_SALT_LENGTH (int): 随机盐值长度（字节）
        DEFAULT_PASSWORD_LENGTH (int): 随机口令长度（字节）
        DEFAULT_ITERATIONS (int): PBKDF2 迭代次数

    Example:
        >>> crypto = CryptoManager()
        >>> token = crypto.encrypt("secret")
        >>> crypto.decrypt(token)
        'secret'
    """

    DEFAULT_SALT_LENGTH = 16
    DEFAULT_PASSWORD_LENGTH = 32
    DEFAULT_ITERATIONS = 480000

    def __init__(
        self,
        password: str | None = None,
        salt: bytes | None = None,
        iterations: int | None = None,
    ) -> None:
        """
        Args:
            password: 口令，None 时生成随机口令
            salt: 盐值，None 时生成随机盐值
            iterations: PBKDF2 迭代次数，None 时使用 DEFAULT_ITERATIONS

        Raises:
            CryptoError: 当密钥派生失败时
        """
        self.password = password or base64.urlsafe_b64encode(
            secrets.token_bytes(self.DEFAULT_PASSWORD_LENGTH)
        ).decode("utf-8")
        self.salt = salt or secrets.token_bytes(self.DEFAULT_SALT_LENGTH)
        self.iterations = iterations or self.DEFAULT_ITERATIONS
        self.fernet = self._derive_fernet()

        logger.debug(f"加密管理器初始化成功，迭代次数: {self.iterations}")

    def _derive_fernet(self) -> Fernet:
        try:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=32,
                salt=self.salt,
                iterations=self.iterations,
                backend=default_backend(),
            )
            key = base64.urlsafe_b64encode(kdf.derive(self.password.encode("utf-8")))
            return Fernet(key)
        except (TypeError, ValueError) as e:
            logger.error(f"加密密钥派生失败: {str(e)}")
            raise CryptoError(
                f"加密密钥派生失败: {str(e)}", "CRYPTO_DERIVE_FAILED", operation="derive_key"
            ) from e

    def encrypt(self, data: str) -> str:
        """
        加密字符串

        Raises:
            ValueError: 当数据为空或不是字符串时
        """
        if not data or not isinstance(data, str):
            raise ValueError("加密数据不能为空且必须是字符串")

        return self.fernet.encrypt(data.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> str:
        """
        解密由 encrypt 生成的令牌

        Raises:
            ValueError: 当令牌为空或不是字符串时
            CryptoError: 当令牌被篡改或密钥不匹配时
        """
        if not token or not isinstance(token, str):
            raise ValueError("加密数据不能为空且必须是字符串")

        try:
            return self.fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as e:
            logger.error("解密令牌无效")
            raise CryptoError(
                "解密失败: 加密数据可能被篡改或密钥不匹配",
                "CRYPTO_INVALID_TOKEN",
                operation="decrypt",
            ) from e

    def get_key_info(self) -> Dict[str, Any]:
        """
        导出用于持久化的密钥信息

        Returns:
            Dict[str, Any]: 包含 salt（base64）、password 和 iterations
        """
        return {
            "salt": base64.urlsafe_b64encode(self.salt).decode("utf-8"),
            "password": self.password,
            "iterations": self.iterations,
        }

    @classmethod
    def from_saved_key(
        cls, password: str, salt: str, iterations: int | None = None
    ) -> "CryptoManager":
        """
        由 get_key_info 导出的信息恢复加密管理器

        Raises:
            ValueError: 当口令或盐值为空时
            CryptoError: 当盐值无法解码时
        """
        if not password or not salt:
            raise ValueError("密码和盐值不能为空")

        try:
            salt_bytes = base64.urlsafe_b64decode(salt.encode("utf-8"))
        except (binascii.Error, ValueError) as e:
            logger.error(f"盐值解码失败: {str(e)}")
            raise CryptoError(
                f"密钥恢复失败: {str(e)}", "CRYPTO_INVALID_SALT", operation="load_key"
            ) from e

        return cls(password, salt_bytes, iterations)

    def __repr__(self) -> str:
        return f"<CryptoManager iterations={self.iterations}>"
