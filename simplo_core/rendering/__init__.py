"""展示层辅助：把模型输出规范化为纯文本段落。"""

from simplo_core.rendering.normalizer import normalize_text, split_paragraphs

__all__ = ["normalize_text", "split_paragraphs"]
