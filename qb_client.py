import logging

import qbittorrentapi
from qbittorrentapi import exceptions

from ratio_policy import TorrentRecord

logger = logging.getLogger(__name__)


class ClientError(Exception):
    pass


class QbitClient:
    """The two calls the cleanup loop needs from qBittorrent: list and delete."""

    def __init__(self, client, delete_files=True):
        self.client = client
        self.delete_files = delete_files

    @classmethod
    def login(cls, endpoint, username, password, delete_files=True):
        conn_info = dict(host=endpoint, username=username, password=password)
        qbt_client = qbittorrentapi.Client(**conn_info)
        try:
            qbt_client.auth_log_in()
        except exceptions.APIError as e:
            raise ClientError(f"Failed to log in to qBittorrent at {endpoint}: {e}") from e
        logger.debug(f"Logged in to {endpoint} as {username}")
        return cls(qbt_client, delete_files=delete_files)

    def fetch_all(self):
        try:
            torrents = self.client.torrents_info()
        except exceptions.APIError as e:
            raise ClientError(f"Failed to fetch torrent list: {e}") from e

        records = []
        for t in torrents:
            try:
                records.append(to_record(t))
            except ValueError as e:
                logger.warning(f"Skipping torrent {t.get('name', '?')}: {e}")
        logger.debug(f"Fetched {len(records)} of {len(torrents)} torrents")
        return records

    def delete(self, torrent_hash):
        try:
            self.client.torrents_delete(torrent_hashes=torrent_hash, delete_files=self.delete_files)
        except exceptions.APIError as e:
            raise ClientError(f"Failed to delete torrent {torrent_hash}: {e}") from e


def to_record(t):
    ratio = t.get('ratio')
    added_on = t.get('added_on')
    return TorrentRecord(
        hash=t.get('hash') or '',
        name=t.get('name') or '',
        added_on=float(added_on) if added_on is not None else None,
        ratio=float(ratio) if ratio is not None else None,
    )
