# -*- coding: utf-8 -*-
"""
Recording Service - CPTV recording listing, lookup and deletion
Version: 1.0.0
"""

import os
import glob
import logging

from .config_service import get_cptv_dir
from config import CPTV_GLOB, FAILED_UPLOADS_FOLDER

logger = logging.getLogger(__name__)

# ============================================================================
# RECORDING DIRECTORY
# ============================================================================

def get_recording_dirs(cptv_dir=None):
    """Directories searched for recordings, in lookup order."""
    cptv_dir = cptv_dir or get_cptv_dir()
    return [cptv_dir, os.path.join(cptv_dir, FAILED_UPLOADS_FOLDER)]

def get_cptv_names(cptv_dir=None):
    """
    Base names of the CPTV files on the device.

    Args:
        cptv_dir: recordings directory (default from daemon config)

    Returns:
        list: file names, pending uploads first then failed uploads
    """
    names = []
    for directory in get_recording_dirs(cptv_dir):
        for path in sorted(glob.glob(os.path.join(directory, CPTV_GLOB))):
            names.append(os.path.basename(path))
    return names

def _is_inside(path, directory):
    if '\x00' in path:
        return False
    real_path = os.path.realpath(path)
    real_dir = os.path.realpath(directory)
    return os.path.commonpath([real_path, real_dir]) == real_dir

def get_recording_path(name, cptv_dir=None):
    """
    Resolve a recording name to its path.

    Names that resolve outside the recording directories are rejected.

    Returns:
        str: path to the file, or '' if not found
    """
    if not name:
        return ''
    for directory in get_recording_dirs(cptv_dir):
        path = os.path.join(directory, name)
        if not _is_inside(path, directory):
            logger.warning(f"[Recordings] Rejected path outside recordings dir: {name}")
            return ''
        if os.path.isfile(path):
            return path
    return ''

def get_recording_mimetype(name):
    if os.path.splitext(name)[1].lower() == '.cptv':
        return 'application/x-cptv'
    return 'application/json'

# ============================================================================
# DELETION
# ============================================================================

def delete_recording(name, cptv_dir=None):
    """
    Delete a recording and its .txt metadata file.

    Returns:
        dict: {success: bool, found: bool, message: str}
    """
    path = get_recording_path(name, cptv_dir)
    if not path:
        return {'success': True, 'found': False, 'message': 'cptv file not found'}

    try:
        os.remove(path)
    except OSError as e:
        logger.error(f"[Recordings] Failed to delete {path}: {e}")
        return {'success': False, 'found': True, 'message': str(e)}

    meta_path = os.path.splitext(path)[0] + '.txt'
    if os.path.exists(meta_path):
        try:
            os.remove(meta_path)
        except OSError as e:
            logger.warning(f"[Recordings] Failed to delete meta file {meta_path}: {e}")

    logger.info(f"[Recordings] Deleted {name}")
    return {'success': True, 'found': True, 'message': 'cptv file deleted'}
