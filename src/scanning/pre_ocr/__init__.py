from .data_uri import decode_data_uri, encode_data_uri, decode_image, get_image_size
from .label_preprocessor import LabelPreprocessor, PreprocessResult

__all__ = [
    "decode_data_uri",
    "encode_data_uri",
    "decode_image",
    "get_image_size",
    "LabelPreprocessor",
    "PreprocessResult",
]
