"""
视频解析相关数据模型
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel


# -------- API 请求模型 (Pydantic) --------

class BatchRequest(BaseModel):
    """批量解析的请求体"""
    urls: List[Any]                                    # 待解析的分享链接，非字符串项会被忽略


# -------- 内部数据模型 (dataclass) --------

@dataclass(frozen=True)
class ParsedVideo:
    """上游解析成功后的去水印结果"""
    author: Any                                  # 作者昵称
    author_id: Any                               # 作者 ID
    title: Any                                   # 视频标题
    cover: Any                                   # 封面图 URL
    url: Any                                     # 无水印视频 URL
    music_url: Any                               # 背景音乐 URL
    avatar: Any                                  # 作者头像 URL
    create_time: Optional[Any] = None            # 发布时间
    video_duration: Optional[Any] = None         # 时长
    images: List[Any] = field(default_factory=list)  # 图集

    @classmethod
    def from_upstream(cls, data: dict) -> "ParsedVideo":
        """按字段原样映射上游 data，不做任何值转换"""
        if not isinstance(data, dict):
            raise ValueError(f"上游 data 字段不是对象: {type(data).__name__}")
        images = data.get("images")
        return cls(
            author=data.get("author"),
            author_id=data.get("author_id"),
            title=data.get("title"),
            cover=data.get("cover"),
            url=data.get("url"),
            music_url=data.get("music_url"),
            avatar=data.get("avatar"),
            create_time=data.get("create_time"),
            video_duration=data.get("video_duration"),
            images=images if images is not None else [],
        )

    def to_dict(self) -> dict:
        result = {
            "author": self.author,
            "author_id": self.author_id,
            "title": self.title,
            "cover": self.cover,
            "url": self.url,
            "music_url": self.music_url,
            "avatar": self.avatar,
            "images": self.images,
        }
        # 可选字段缺省时不输出
        if self.create_time is not None:
            result["create_time"] = self.create_time
        if self.video_duration is not None:
            result["video_duration"] = self.video_duration
        return result


@dataclass(frozen=True)
class ParseOutcome:
    """单条解析结果，data 仅在 code == 200 时非空"""
    code: int
    msg: str
    data: Optional[ParsedVideo] = None

    def __post_init__(self):
        if (self.data is not None) != (self.code == 200):
            raise ValueError(f"data 与 code 不一致: code={self.code}, data={self.data!r}")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "msg": self.msg,
            "data": self.data.to_dict() if self.data is not None else None,
        }


@dataclass(frozen=True)
class BatchItemResult:
    """批量中的单条结果，附带规范化后的原始链接"""
    url: str
    outcome: ParseOutcome

    @property
    def code(self) -> int:
        return self.outcome.code

    def to_dict(self) -> dict:
        return {"url": self.url, **self.outcome.to_dict()}


@dataclass(frozen=True)
class BatchOutcome:
    """批量解析的整体结果"""
    code: int
    msg: str
    data: List[BatchItemResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "msg": self.msg,
            "data": [item.to_dict() for item in self.data],
        }
