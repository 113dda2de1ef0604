"""
Oracle 연결 프로필 모델 및 관리자
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from cryptography.fernet import Fernet

from partition_redefine.database.local_db import Profile, get_db
from partition_redefine.utils.app_paths import AppPaths
from partition_redefine.utils.validators import ConnectionValidator


class ConnectionProfile:
    """연결 프로필 데이터 클래스

    connection_config 키: username, password, dsn 또는 host/port/service_name
    """

    def __init__(
        self,
        id: Optional[int] = None,
        name: str = "",
        connection_config: dict[str, Any] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.connection_config = connection_config or {}
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def dsn(self) -> str:
        """접속 문자열 (dsn이 없으면 host:port/service_name 간편 접속 형식)"""
        config = self.connection_config
        if config.get("dsn"):
            return config["dsn"]
        return f"{config['host']}:{config.get('port', 1521)}/{config['service_name']}"

    def connect_params(self) -> dict[str, Any]:
        """oracledb.connect() 인자"""
        return {
            "user": self.connection_config["username"],
            "password": self.connection_config.get("password", ""),
            "dsn": self.dsn,
        }

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (비밀번호 제외)"""
        config = {k: v for k, v in self.connection_config.items() if k != "password"}
        return {
            "id": self.id,
            "name": self.name,
            "connection_config": config,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_db_model(cls, db_profile: Profile, cipher_suite: Fernet) -> "ConnectionProfile":
        """DB 모델에서 생성 (설정 복호화)"""
        config = json.loads(cipher_suite.decrypt(db_profile.connection_config.encode()).decode())

        return cls(
            id=db_profile.id,
            name=db_profile.name,
            connection_config=config,
            created_at=db_profile.created_at,
            updated_at=db_profile.updated_at,
        )


class ProfileManager:
    """프로필 관리자 클래스

    연결 설정은 Fernet으로 암호화해 저장합니다. 키는 앱 데이터 디렉토리의
    profile.key 파일에 보관하며 없으면 새로 만듭니다.
    """

    def __init__(self, db=None, key_path: Optional[Path] = None):
        self.db = db or get_db()
        self.key_path = Path(key_path) if key_path else AppPaths.get_key_path()
        self._cipher_suite = self._get_or_create_cipher()

    def _get_or_create_cipher(self) -> Fernet:
        """암호화 키 읽기 또는 생성"""
        if self.key_path.exists():
            key = self.key_path.read_bytes().strip()
        else:
            key = Fernet.generate_key()
            self.key_path.parent.mkdir(parents=True, exist_ok=True)
            self.key_path.write_bytes(key)
            self.key_path.chmod(0o600)
        return Fernet(key)

    def _encrypt_config(self, config: dict[str, Any]) -> str:
        json_str = json.dumps(config)
        return self._cipher_suite.encrypt(json_str.encode()).decode()

    @staticmethod
    def _validate(profile_data: dict[str, Any]):
        """프로필 입력 검증 (실패 시 ValueError)"""
        is_valid, message = ConnectionValidator.validate_profile_name(profile_data.get("name", ""))
        if not is_valid:
            raise ValueError(message)

        is_valid, message = ConnectionValidator.validate_connection_config(
            profile_data.get("connection_config") or {}
        )
        if not is_valid:
            raise ValueError(message)

    def create_profile(self, profile_data: dict[str, Any]) -> ConnectionProfile:
        """새 프로필 생성

        Raises:
            ValueError: 입력값이 잘못된 경우
        """
        self._validate(profile_data)

        with self.db.session_scope() as session:
            db_profile = Profile(
                name=profile_data["name"],
                connection_config=self._encrypt_config(profile_data["connection_config"]),
            )

            session.add(db_profile)
            session.flush()  # ID 생성을 위해 flush

            return ConnectionProfile.from_db_model(db_profile, self._cipher_suite)

    def get_profile(self, profile_id: int) -> Optional[ConnectionProfile]:
        """프로필 조회"""
        with self.db.session_scope() as session:
            db_profile = session.query(Profile).filter_by(id=profile_id).first()
            if db_profile:
                return ConnectionProfile.from_db_model(db_profile, self._cipher_suite)
            return None

    def get_profile_by_name(self, name: str) -> Optional[ConnectionProfile]:
        """이름으로 프로필 조회"""
        with self.db.session_scope() as session:
            db_profile = session.query(Profile).filter_by(name=name).first()
            if db_profile:
                return ConnectionProfile.from_db_model(db_profile, self._cipher_suite)
            return None

    def get_all_profiles(self) -> list[ConnectionProfile]:
        """모든 프로필 조회 (이름순)"""
        with self.db.session_scope() as session:
            db_profiles = session.query(Profile).order_by(Profile.name).all()
            return [ConnectionProfile.from_db_model(p, self._cipher_suite) for p in db_profiles]

    def update_profile(self, profile_id: int, profile_data: dict[str, Any]) -> ConnectionProfile:
        """프로필 수정"""
        self._validate(profile_data)

        with self.db.session_scope() as session:
            db_profile = session.query(Profile).filter_by(id=profile_id).first()
            if not db_profile:
                raise ValueError(f"프로필을 찾을 수 없습니다: {profile_id}")

            db_profile.name = profile_data["name"]
            db_profile.connection_config = self._encrypt_config(profile_data["connection_config"])

            return ConnectionProfile.from_db_model(db_profile, self._cipher_suite)

    def delete_profile(self, profile_id: int) -> bool:
        """프로필 삭제"""
        with self.db.session_scope() as session:
            db_profile = session.query(Profile).filter_by(id=profile_id).first()
            if db_profile:
                session.delete(db_profile)
                return True
            return False
