"""Device fingerprint extraction."""
import json
from typing import Any, Dict, Optional

USER_AGENT_MAX_LENGTH = 100

# (record key, accepted client keys) in serialisation order
FINGERPRINT_FIELDS = (
    ('screen', ('screen', 'screen_resolution')),
    ('timezone', ('timezone',)),
    ('language', ('language', 'locale')),
    ('platform', ('platform',)),
    ('canvas', ('canvas',)),
    ('userAgent', ('userAgent', 'user_agent')),
    ('cookiesEnabled', ('cookiesEnabled', 'cookies_enabled')),
    ('doNotTrack', ('doNotTrack', 'do_not_track')),
    ('hardwareConcurrency', ('hardwareConcurrency', 'hardware_concurrency')),
    ('deviceMemory', ('deviceMemory', 'device_memory')),
)


class FingerprintService:
    """Derive a pseudo-identity for the submitting device.

    The hash is spoofable and collides across identical hardware/software
    images; it is a deterrent signal, not an identity.
    """
    
    @staticmethod
    def build_record(signals: Dict[str, Any], user_agent: Optional[str] = None) -> Dict[str, Any]:
        """Collect the fixed attribute set into an ordered record."""
        record = {}
        for key, aliases in FINGERPRINT_FIELDS:
            value = next((signals[a] for a in aliases if a in signals), None)
            record[key] = value
        
        if record['userAgent'] is None:
            record['userAgent'] = user_agent
        if record['userAgent'] is not None:
            record['userAgent'] = str(record['userAgent'])[:USER_AGENT_MAX_LENGTH]
        if record['deviceMemory'] is None:
            record['deviceMemory'] = 'unknown'
        
        return record
    
    @staticmethod
    def hash_string(value: str) -> str:
        """31-multiplier rolling hash over UTF-16 code units, as 32-bit hex."""
        data = value.encode('utf-16-le')
        hash_value = 0
        for i in range(0, len(data), 2):
            code_unit = data[i] | (data[i + 1] << 8)
            hash_value = ((hash_value << 5) - hash_value + code_unit) & 0xFFFFFFFF
        
        if hash_value >= 0x80000000:
            hash_value -= 0x100000000
        
        return format(abs(hash_value), 'x')
    
    @staticmethod
    def extract(signals: Optional[Dict[str, Any]], user_agent: Optional[str] = None) -> Optional[str]:
        """Reduce device signals to a hex fingerprint, or None when absent."""
        if not signals:
            return None
        
        record = FingerprintService.build_record(signals, user_agent=user_agent)
        serialized = json.dumps(record, separators=(',', ':'), ensure_ascii=False)
        return FingerprintService.hash_string(serialized)
